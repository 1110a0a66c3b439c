"""
Async client for the wallet API.

The API holds the server half of every split key. ``/wallet/access`` trades a
host session token and the client lookup tag for the intermediary key;
``/wallet/address`` records the wallet address a client derived.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from eth_utils import decode_hex
from pydantic import ValidationError

from .base import Provider
from ..config import settings
from ..core.wallet.errors import DerivationFailedError, ProtocolError, ServerRejectedError
from ..core.wallet.models import KEY_SIZE
from ..types import AccessRequest, AccessResponse, AddressReport


logger = logging.getLogger(__name__)


class WalletApiProvider(Provider):
    name = "wallet_api"

    def __init__(
        self,
        endpoint: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(transport=transport)
        self.endpoint = (endpoint or settings.wallet_endpoint).rstrip("/")
        self.timeout_s = timeout_s if timeout_s is not None else settings.request_timeout_seconds

    async def ready(self) -> bool:
        return bool(self.endpoint)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "Wallet endpoint not configured"}
        return {"status": "configured", "endpoint": self.endpoint}

    async def request_intermediary_key(
        self,
        project_public_token: str,
        host_session_token: str,
        client_public_key: bytes,
    ) -> bytes:
        """
        Fetch the server half of the key for this client.

        Raises:
            DerivationFailedError: transport failure, or an HTTP error without a usable body
            ServerRejectedError: the server answered ``{result: false, error}``
            ProtocolError: the answer does not follow the wire contract
        """
        payload = AccessRequest(
            project_public_token=project_public_token,
            host_session_token=host_session_token,
            client_public_key=client_public_key.hex(),
        )
        client = await self._get_client()

        try:
            response = await client.post(f"{self.endpoint}/wallet/access", json=payload.to_wire())
        except httpx.HTTPError as exc:
            raise DerivationFailedError(f"Wallet access request failed: {exc}") from exc

        try:
            parsed = AccessResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            if response.is_error:
                raise DerivationFailedError(
                    f"Wallet access request failed with HTTP {response.status_code}"
                ) from exc
            raise ProtocolError("Wallet access response does not match the wire contract") from exc

        if not parsed.result:
            if not parsed.error:
                raise ProtocolError("Wallet access rejection carries no error message")
            logger.warning(f"Wallet access rejected by server: {parsed.error}")
            raise ServerRejectedError(parsed.error)

        if parsed.data is None:
            raise ProtocolError("Wallet access response is missing data.intermediaryKey")

        try:
            intermediary_key = decode_hex(parsed.data.intermediary_key)
        except ValueError as exc:
            raise ProtocolError("Intermediary key is not valid hex") from exc

        if len(intermediary_key) != KEY_SIZE:
            raise ProtocolError(f"Intermediary key must be {KEY_SIZE} bytes, got {len(intermediary_key)}")

        return intermediary_key

    async def report_address(
        self,
        project_public_token: str,
        host_session_token: str,
        wallet_address: str,
    ) -> None:
        """Tell the server which address this client derived. The response body is ignored."""
        payload = AddressReport(
            project_public_token=project_public_token,
            host_session_token=host_session_token,
            wallet_address=wallet_address,
        )
        client = await self._get_client()
        response = await client.post(f"{self.endpoint}/wallet/address", json=payload.to_wire())
        response.raise_for_status()
