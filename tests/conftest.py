"""Shared fixtures: in-memory storage plus fake wallet API and chain RPC over httpx.MockTransport."""

import hashlib
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from tmawallet.core.wallet import WalletSession
from tmawallet.providers import JsonRpcProvider, WalletApiProvider
from tmawallet.storage import MemoryStorage


WALLET_ENDPOINT = "https://wallet.test/tmawallet"
RPC_URL = "https://rpc.test"
PROJECT_TOKEN = "pk_test_project"
SESSION_TOKEN = "query_id=AAE&user=%7B%22id%22%3A1%7D&hash=abc"
TX_HASH = "0x" + "ab" * 32


class FakeWalletServer:
    """Serves /wallet/access and /wallet/address like the real wallet API."""

    def __init__(self) -> None:
        self.access_calls: List[Dict[str, Any]] = []
        self.address_reports: List[Dict[str, Any]] = []
        self.reject_with: Optional[str] = None
        self.access_response: Optional[httpx.Response] = None
        self.fail_address_report = False

    def intermediary_key(self, client_public_key_hex: str) -> bytes:
        return hashlib.sha256(b"server-half:" + bytes.fromhex(client_public_key_hex)).digest()

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if request.url.path.endswith("/wallet/access"):
            self.access_calls.append(body)
            if self.access_response is not None:
                return self.access_response
            if self.reject_with is not None:
                return httpx.Response(200, json={"result": False, "error": self.reject_with})
            key = self.intermediary_key(body["clientPublicKey"])
            return httpx.Response(200, json={"result": True, "data": {"intermediaryKey": key.hex()}})
        if request.url.path.endswith("/wallet/address"):
            self.address_reports.append(body)
            if self.fail_address_report:
                return httpx.Response(503, json={"result": False, "error": "unavailable"})
            return httpx.Response(200, json={"result": True})
        return httpx.Response(404)


class FakeChain:
    """Minimal JSON-RPC node."""

    def __init__(self, chain_id: int = 1) -> None:
        self.chain_id = chain_id
        self.calls: List[Dict[str, Any]] = []
        self.raw_transactions: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        method = body["method"]
        results = {
            "eth_chainId": hex(self.chain_id),
            "eth_getTransactionCount": "0x5",
            "eth_estimateGas": "0x5208",
            "eth_gasPrice": "0x3b9aca00",
            "eth_blockNumber": "0x10",
            "eth_getBalance": "0xde0b6b3a7640000",
        }
        if method == "eth_sendRawTransaction":
            self.raw_transactions.append(body["params"][0])
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": TX_HASH})
        if method in results:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": results[method]})
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "Method not found"}},
        )

    def methods(self) -> List[str]:
        return [call["method"] for call in self.calls]


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def wallet_server() -> FakeWalletServer:
    return FakeWalletServer()


@pytest.fixture
def wallet_api(wallet_server: FakeWalletServer) -> WalletApiProvider:
    return WalletApiProvider(WALLET_ENDPOINT, transport=httpx.MockTransport(wallet_server.handler))


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def rpc(chain: FakeChain) -> JsonRpcProvider:
    return JsonRpcProvider(RPC_URL, transport=httpx.MockTransport(chain.handler))


@pytest.fixture
def session(storage: MemoryStorage, wallet_api: WalletApiProvider) -> WalletSession:
    return WalletSession(
        project_public_token=PROJECT_TOKEN,
        host_session_token=SESSION_TOKEN,
        storage=storage,
        wallet_api=wallet_api,
    )
