"""
JSON-RPC chain connection.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from .base import Provider
from ..config import settings


logger = logging.getLogger(__name__)


class RpcError(Exception):
    """JSON-RPC error returned by the node."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data

    @classmethod
    def from_payload(cls, error: Any) -> "RpcError":
        if isinstance(error, dict):
            return cls(
                code=int(error.get("code", -32603)),
                message=str(error.get("message", "Unknown error")),
                data=error.get("data"),
            )
        return cls(code=-32603, message=str(error))


def to_quantity(value: Any) -> int:
    """Parse a JSON-RPC quantity (hex string or int) into an int."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.lower().startswith("0x") else int(value)
    raise ValueError(f"Invalid quantity: {value!r}")


class JsonRpcProvider(Provider):
    name = "rpc"
    timeout_s = 20

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(transport=transport)
        self.rpc_url = rpc_url or settings.rpc_url
        if timeout_s is not None:
            self.timeout_s = timeout_s
        self._ids = itertools.count(1)
        self._chain_id: Optional[int] = None

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": "RPC URL not configured"}

        try:
            result = await self.request("eth_chainId", [])
            return {"status": "healthy", "chainId": result}
        except Exception as exc:
            return {"status": "error", "reason": str(exc)}

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        client = await self._get_client()

        response = await client.post(
            self.rpc_url,
            json={"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []},
        )
        response.raise_for_status()
        payload = response.json()
        if payload.get("error") is not None:
            raise RpcError.from_payload(payload["error"])
        return payload.get("result")

    async def get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = to_quantity(await self.request("eth_chainId", []))
        return self._chain_id

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return to_quantity(await self.request("eth_getTransactionCount", [address, block]))

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return to_quantity(await self.request("eth_estimateGas", [tx]))

    async def get_gas_price(self) -> int:
        return to_quantity(await self.request("eth_gasPrice", []))

    async def send_raw_transaction(self, raw_transaction: str) -> str:
        result = await self.request("eth_sendRawTransaction", [raw_transaction])
        if not isinstance(result, str):
            raise RpcError(-32603, "Invalid response for eth_sendRawTransaction")
        logger.info(f"Broadcast transaction {result}")
        return result
