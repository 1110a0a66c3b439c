"""
Wallet session state machine.

    UNREGISTERED -> REGISTERED_NO_WALLET -> REGISTERED_WITH_WALLET

``destroy()`` returns to UNREGISTERED from any state. The session keeps no
private key: ``access_private_key()`` re-derives it every time.

Calls are not serialized internally. If the embedding application can issue
overlapping calls (e.g. two ``authenticate()`` at once) it must serialize
them itself.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING, Optional

from tmawallet.core.events import Topic
from tmawallet.logging_config import bind_wallet_context
from tmawallet.storage import KeyValueStorage

from .bundle_store import BundleStore, RandomSource
from .derivation import KeyDerivationProtocol
from .errors import AlreadyExistsError, NotRegisteredError
from .models import ClientBundle, SessionState, WalletStatus
from .signer import EthAccountSigner, SessionSigner, SignerFactory
from .wallet_cache import WalletCache

if TYPE_CHECKING:
    from tmawallet.providers.rpc import JsonRpcProvider
    from tmawallet.providers.wallet_api import WalletApiProvider


logger = logging.getLogger(__name__)


class WalletSession:
    """
    Orchestrates the client bundle, the address cache and key derivation.

    Usage:
        session = WalletSession(
            project_public_token="pk_...",
            host_session_token=init_data,
            storage=MemoryStorage(),
            wallet_api=WalletApiProvider("https://wallet.example/api"),
        )
        session.wallet_changed.subscribe(lambda address: print(address))

        await session.authenticate()   # creates the bundle, derives the wallet
        print(session.state)
    """

    def __init__(
        self,
        project_public_token: str,
        host_session_token: str,
        storage: KeyValueStorage,
        wallet_api: "WalletApiProvider",
        *,
        signer_factory: SignerFactory = EthAccountSigner,
        random_source: Optional[RandomSource] = None,
    ):
        self.project_public_token = project_public_token
        self.storage = storage

        self.bundles = BundleStore(storage, random_source=random_source or secrets.token_bytes)
        self.wallet_cache = WalletCache(storage)
        self.derivation = KeyDerivationProtocol(
            wallet_api=wallet_api,
            project_public_token=project_public_token,
            host_session_token=host_session_token,
        )
        self._signer_factory = signer_factory

        self._wallet_address: Optional[str] = None
        self.wallet_changed = Topic("walletChanged", distinct=True, initial=None)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def bundle(self) -> Optional[ClientBundle]:
        return self.bundles.bundle

    @property
    def has_bundle(self) -> bool:
        return self.bundle is not None

    @property
    def wallet_address(self) -> Optional[str]:
        return self._wallet_address if self.has_bundle else None

    @property
    def state(self) -> SessionState:
        if not self.has_bundle:
            return SessionState(registered=False, wallet_address=None)
        return SessionState(registered=True, wallet_address=self._wallet_address)

    @property
    def status(self) -> WalletStatus:
        return self.state.status

    def _notify(self) -> None:
        bundle = self.bundle
        bind_wallet_context(bundle.client_public_key.hex()[:8] if bundle else None, self.status.value)
        if self.wallet_changed.publish(self.wallet_address):
            logger.debug(f"Wallet changed: {self.wallet_address}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def init(self) -> SessionState:
        """Load persisted state. Never creates a bundle or derives a key."""
        bundle = await self.bundles.get_bundle()
        if bundle is not None:
            self._wallet_address = await self.wallet_cache.lookup(bundle.client_public_key)
        else:
            self._wallet_address = None
        self._notify()
        return self.state

    async def authenticate(self) -> SessionState:
        """
        Bring the session to REGISTERED_WITH_WALLET.

        Creates the bundle when there is none, then derives the wallet when
        no address is cached. A no-op once the wallet exists. If derivation
        fails the new bundle stays, so the next call only retries derivation.
        """
        await self.init()
        if self.status == WalletStatus.UNREGISTERED:
            await self.create_bundle()
        if self.status == WalletStatus.REGISTERED_NO_WALLET:
            await self.derive_and_register_wallet()
        return self.state

    async def create_bundle(self) -> SessionState:
        if self.has_bundle:
            raise AlreadyExistsError()
        await self.bundles.create_bundle()
        self._wallet_address = None
        self._notify()
        return self.state

    async def derive_and_register_wallet(self) -> SessionState:
        """
        Derive the signing key, cache its address and report it to the server.

        Raises:
            NotRegisteredError: no bundle
            DerivationFailedError, ServerRejectedError, ProtocolError: derivation failed;
                the session stays REGISTERED_NO_WALLET
        """
        bundle = self._require_bundle()
        private_key = await self.derivation.restore_private_key(bundle)
        wallet_address = self._signer_factory(private_key).address

        await self.wallet_cache.store(bundle.client_public_key, wallet_address)
        self._wallet_address = wallet_address
        self._notify()
        logger.info(f"Registered wallet {wallet_address}")

        try:
            await self.derivation.report_address(wallet_address)
        except Exception as e:
            logger.warning(f"Failed to report wallet address {wallet_address}: {e}")

        return self.state

    async def clear_local_wallet_address(self) -> SessionState:
        """Forget the cached address. The bundle is untouched, so it can be derived again."""
        await self.wallet_cache.clear()
        self._wallet_address = None
        self._notify()
        return self.state

    async def destroy(self) -> SessionState:
        """Destroy the bundle. Without it the wallet can never be derived again."""
        await self.bundles.destroy_bundle()
        try:
            await self.wallet_cache.clear()
        finally:
            self._wallet_address = None
            self._notify()
            logger.warning("Client bundle destroyed; wallet access is lost for this device")
        return self.state

    # ------------------------------------------------------------------
    # Signing material
    # ------------------------------------------------------------------

    async def access_private_key(self) -> bytes:
        """Derive the signing key from scratch."""
        bundle = self._require_bundle()
        return await self.derivation.restore_private_key(bundle)

    def get_signer(self, rpc: Optional["JsonRpcProvider"] = None) -> SessionSigner:
        self._require_bundle()
        return SessionSigner(self, rpc=rpc, signer_factory=self._signer_factory)

    def _require_bundle(self) -> ClientBundle:
        bundle = self.bundle
        if bundle is None:
            raise NotRegisteredError()
        return bundle
