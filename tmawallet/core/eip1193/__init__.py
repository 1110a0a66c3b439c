from .bridge import BridgeError, CompatibilityBridge, Eip1193Bridge
from .provider import WalletProvider
from .requests import (
    AccountsRequest,
    ChainIdRequest,
    PassthroughRequest,
    SendTransactionRequest,
    SignMessageRequest,
    parse_request,
)
from .router import PROVIDER_EVENTS, ProviderRouter

__all__ = [
    "BridgeError",
    "CompatibilityBridge",
    "Eip1193Bridge",
    "WalletProvider",
    "AccountsRequest",
    "ChainIdRequest",
    "PassthroughRequest",
    "SendTransactionRequest",
    "SignMessageRequest",
    "parse_request",
    "PROVIDER_EVENTS",
    "ProviderRouter",
]
