"""
tmawallet - split-key wallet for host mini-apps.

The signing key is never stored. The device keeps a client bundle, the
wallet API keeps an intermediary key, and the signing key is rebuilt as
HMAC-SHA256(intermediary_key, client_secret_key) whenever it is needed.
"""

__version__ = "0.3.0"

from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from .core.wallet import (
    SessionState,
    WalletError,
    WalletSession,
    WalletStatus,
)
from .core.eip1193 import ProviderRouter, WalletProvider
from .providers import JsonRpcProvider, WalletApiProvider


def create_provider(
    project_public_token: str,
    host_session_token: str,
    *,
    storage: KeyValueStorage,
    wallet_api: WalletApiProvider,
    rpc: JsonRpcProvider,
) -> WalletProvider:
    """Wire a session, router and provider together."""
    session = WalletSession(
        project_public_token=project_public_token,
        host_session_token=host_session_token,
        storage=storage,
        wallet_api=wallet_api,
    )
    return WalletProvider(ProviderRouter(session, rpc))


__all__ = [
    "__version__",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "SessionState",
    "WalletError",
    "WalletSession",
    "WalletStatus",
    "ProviderRouter",
    "WalletProvider",
    "JsonRpcProvider",
    "WalletApiProvider",
    "create_provider",
]
