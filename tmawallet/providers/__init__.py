from .base import Provider
from .rpc import JsonRpcProvider, RpcError
from .wallet_api import WalletApiProvider

__all__ = [
    "Provider",
    "JsonRpcProvider",
    "RpcError",
    "WalletApiProvider",
]
