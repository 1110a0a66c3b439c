"""
Split-secret key derivation.

    DerivedPrivateKey = HMAC-SHA256(key=IntermediaryKey, msg=clientSecretKey)

The intermediary key is issued by the wallet API per request and only lives
for one derivation. Neither half alone yields the private key, and the
result is never cached: every signing operation derives it again.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import TYPE_CHECKING

from .models import ClientBundle

if TYPE_CHECKING:
    from tmawallet.providers.wallet_api import WalletApiProvider


logger = logging.getLogger(__name__)


def derive_private_key(intermediary_key: bytes, client_secret_key: bytes) -> bytes:
    """Combine both halves into the 32-byte signing key."""
    return hmac.new(intermediary_key, client_secret_key, hashlib.sha256).digest()


class KeyDerivationProtocol:
    """Fetches the server half and combines it with the client half."""

    def __init__(
        self,
        wallet_api: "WalletApiProvider",
        project_public_token: str,
        host_session_token: str,
    ):
        self.wallet_api = wallet_api
        self.project_public_token = project_public_token
        self.host_session_token = host_session_token

    async def fetch_intermediary_key(self, client_public_key: bytes) -> bytes:
        return await self.wallet_api.request_intermediary_key(
            project_public_token=self.project_public_token,
            host_session_token=self.host_session_token,
            client_public_key=client_public_key,
        )

    async def restore_private_key(self, bundle: ClientBundle) -> bytes:
        """
        Rebuild the signing key for a bundle.

        Raises:
            DerivationFailedError, ServerRejectedError, ProtocolError: from the wallet API
        """
        intermediary_key = await self.fetch_intermediary_key(bundle.client_public_key)
        logger.debug(f"Restoring private key for bundle {bundle.client_public_key.hex()[:8]}...")
        return derive_private_key(intermediary_key, bundle.client_secret_key)

    async def report_address(self, wallet_address: str) -> None:
        await self.wallet_api.report_address(
            project_public_token=self.project_public_token,
            host_session_token=self.host_session_token,
            wallet_address=wallet_address,
        )
