"""
EIP-1193 request router.

Translates provider calls into wallet session operations. Methods outside
the router's own set go to a compatibility bridge.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence

from ..events import EventBus
from ..wallet.errors import AddressMismatchError, UnsupportedMethodError, WalletNotInitializedError
from ..wallet.models import WalletStatus
from .bridge import CompatibilityBridge, Eip1193Bridge
from .requests import (
    SEND_TRANSACTION_METHOD,
    SIGN_METHODS,
    AccountsRequest,
    ChainIdRequest,
    PassthroughRequest,
    SendTransactionRequest,
    SignMessageRequest,
    parse_request,
)

if TYPE_CHECKING:
    from tmawallet.providers.rpc import JsonRpcProvider

    from ..wallet.session import WalletSession
    from ..wallet.signer import SessionSigner


logger = logging.getLogger(__name__)

PROVIDER_EVENTS = [
    "connect",
    "disconnect",
    "close",
    "chainChanged",
    "networkChanged",
    "accountsChanged",
    "message",
    "notification",
]

WALLET_METHODS = SIGN_METHODS | {SEND_TRANSACTION_METHOD}

BridgeFactory = Callable[["ProviderRouter"], CompatibilityBridge]


def default_bridge_factory(router: "ProviderRouter") -> CompatibilityBridge:
    signer = router.session.get_signer(router.rpc) if router.session.has_bundle else None
    return Eip1193Bridge(signer=signer, rpc=router.rpc)


class ProviderRouter:
    """
    Dispatches ``(method, params)`` against a wallet session.

    The router subscribes to ``session.wallet_changed`` for its whole
    lifetime and emits ``accountsChanged`` on its own event bus. It keeps its
    own last-seen address, so several routers can share one session.
    """

    def __init__(
        self,
        session: "WalletSession",
        rpc: "JsonRpcProvider",
        bridge_factory: BridgeFactory = default_bridge_factory,
    ):
        self.session = session
        self.rpc = rpc
        self.events = EventBus(PROVIDER_EVENTS)
        self._bridge_factory = bridge_factory
        self._wallet_address: Optional[str] = session.wallet_address
        self._unsubscribe: Optional[Callable[[], None]] = session.wallet_changed.subscribe(
            self._on_wallet_changed
        )

    def _on_wallet_changed(self, wallet_address: Optional[str]) -> None:
        if wallet_address != self._wallet_address:
            self._wallet_address = wallet_address
            self.events.emit("accountsChanged", [wallet_address] if wallet_address else [])

    def close(self) -> None:
        """Stop following the session."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        # Wallet state is checked before parameter shape
        if method in WALLET_METHODS:
            self._require_wallet()
        request = parse_request(method, params)

        if isinstance(request, AccountsRequest):
            return self.get_accounts()
        if isinstance(request, ChainIdRequest):
            return await self.get_chain_id()
        if isinstance(request, SignMessageRequest):
            return await self.sign_message(request.address, request.message)
        if isinstance(request, SendTransactionRequest):
            return await self.send_transaction(request.transaction)
        return await self._bridge_request(request)

    def get_accounts(self) -> List[str]:
        wallet_address = self.session.wallet_address
        if self.session.has_bundle and wallet_address:
            return [wallet_address]
        return []

    async def get_chain_id(self) -> str:
        return hex(await self.rpc.get_chain_id())

    async def sign_message(self, address: str, message: str) -> str:
        wallet_address = self._require_wallet()
        if address.lower() != wallet_address.lower():
            raise AddressMismatchError(requested=address, expected=wallet_address)
        return await self._signer().sign_message(message)

    async def send_transaction(self, transaction: dict) -> str:
        self._require_wallet()
        return await self._signer().send_transaction(transaction)

    async def _bridge_request(self, request: PassthroughRequest) -> Any:
        try:
            bridge = self._bridge_factory(self)
            return await bridge.request(request.method, request.params)
        except Exception as e:
            logger.info(f"Bridge could not serve {request.method}: {e}")
            raise UnsupportedMethodError(request.method) from e

    def _require_wallet(self) -> str:
        wallet_address = self.session.wallet_address
        if self.session.status != WalletStatus.REGISTERED_WITH_WALLET or not wallet_address:
            raise WalletNotInitializedError()
        return wallet_address

    def _signer(self) -> "SessionSigner":
        return self.session.get_signer(self.rpc)
