"""
Compatibility bridge for provider methods the router does not handle itself.

The router only depends on ``CompatibilityBridge``; whatever the bridge
raises is turned into ``UnsupportedMethodError`` by the router.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List, Optional

from ..wallet.signer import SessionSigner

if TYPE_CHECKING:
    from tmawallet.providers.rpc import JsonRpcProvider


# Forwarded to the chain connection unchanged
READ_ONLY_METHODS = frozenset({
    "eth_blockNumber",
    "eth_call",
    "eth_estimateGas",
    "eth_feeHistory",
    "eth_gasPrice",
    "eth_getBalance",
    "eth_getBlockByHash",
    "eth_getBlockByNumber",
    "eth_getBlockTransactionCountByHash",
    "eth_getBlockTransactionCountByNumber",
    "eth_getCode",
    "eth_getLogs",
    "eth_getStorageAt",
    "eth_getTransactionByHash",
    "eth_getTransactionCount",
    "eth_getTransactionReceipt",
    "eth_maxPriorityFeePerGas",
    "eth_sendRawTransaction",
    "net_version",
    "web3_clientVersion",
})

TYPED_DATA_METHODS = frozenset({"eth_signTypedData", "eth_signTypedData_v4"})
SIGN_TRANSACTION_METHOD = "eth_signTransaction"


class BridgeError(Exception):
    """The bridge could not serve a request."""
    pass


class CompatibilityBridge(ABC):
    """Fallback for provider methods outside the router's own method set."""

    @abstractmethod
    async def request(self, method: str, params: List[Any]) -> Any:
        pass


class Eip1193Bridge(CompatibilityBridge):
    """Serves read-only chain queries, typed-data signing and offline transaction signing."""

    def __init__(
        self,
        signer: Optional[SessionSigner],
        rpc: "JsonRpcProvider",
    ):
        self.signer = signer
        self.rpc = rpc

    async def request(self, method: str, params: List[Any]) -> Any:
        if method in READ_ONLY_METHODS:
            return await self.rpc.request(method, params)

        if method in TYPED_DATA_METHODS:
            if len(params) < 2:
                raise BridgeError(f"{method} expects [address, typedData]")
            signer = self._require_signer(method)
            await self._check_address(signer, params[0])
            return await signer.sign_typed_data(params[1])

        if method == SIGN_TRANSACTION_METHOD:
            if not params or not isinstance(params[0], dict):
                raise BridgeError(f"{method} expects a transaction object")
            signer = self._require_signer(method)
            return await signer.sign_transaction(params[0])

        raise BridgeError(f"Method {method} is not supported by the bridge")

    def _require_signer(self, method: str) -> SessionSigner:
        if self.signer is None:
            raise BridgeError(f"{method} requires a signer")
        return self.signer

    async def _check_address(self, signer: SessionSigner, address: Any) -> None:
        expected = await signer.get_address()
        if not isinstance(address, str) or address.lower() != expected.lower():
            raise BridgeError("Address mismatch")
