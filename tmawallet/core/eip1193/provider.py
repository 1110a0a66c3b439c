"""EIP-1193 provider object handed to the hosted application."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..events import Listener
from ..wallet.errors import InvalidRequestError, UnsupportedMethodError
from .router import ProviderRouter


logger = logging.getLogger(__name__)


class WalletProvider:
    """
    Thin EIP-1193 surface over a ``ProviderRouter``.

    Event subscriptions go straight to the router's event bus, so
    ``accountsChanged`` and bridge events reach the application unchanged.
    """

    is_tmawallet = True

    def __init__(self, router: ProviderRouter):
        self.router = router

    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        if not method:
            raise InvalidRequestError("Method is required")
        return await self.router.handle_request(method, list(params or []))

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        return self.router.events.on(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        self.router.events.off(event, listener)

    async def connect(self) -> Dict[str, str]:
        """Announce the connection to ``connect`` listeners and return the connect info."""
        info = {"chainId": await self.router.get_chain_id()}
        self.router.events.emit("connect", info)
        logger.debug(f"Provider connected to chain {info['chainId']}")
        return info

    async def enable(self) -> List[str]:
        return await self.request("eth_requestAccounts")

    def send(self, *args: Any) -> Any:
        raise UnsupportedMethodError("send")

    def send_async(self, request: Any, callback: Any) -> None:
        raise UnsupportedMethodError("sendAsync")
