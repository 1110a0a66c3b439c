"""
Wallet Module

Split-key wallet for a host mini-app:
- BundleStore: the device-held half of the key (never leaves the device)
- KeyDerivationProtocol: combines it with the server-issued intermediary key
- WalletCache: derived address bound to the bundle that produced it
- WalletSession: state machine tying the three together

Usage:
    from tmawallet.core.wallet import WalletSession

    session = WalletSession(project_token, host_session_token, storage, wallet_api)
    await session.authenticate()
"""

from .errors import (
    WalletError,
    NotRegisteredError,
    AlreadyExistsError,
    WalletNotInitializedError,
    AddressMismatchError,
    ProtocolError,
    ServerRejectedError,
    DerivationFailedError,
    UnsupportedMethodError,
    RandomSourceUnavailableError,
    InvalidParamsError,
    InvalidRequestError,
)
from .models import (
    ClientBundle,
    WalletCacheEntry,
    SessionState,
    WalletStatus,
)
from .bundle_store import BundleStore
from .wallet_cache import WalletCache, public_key_hash
from .derivation import KeyDerivationProtocol, derive_private_key
from .signer import EthAccountSigner, SessionSigner
from .session import WalletSession

__all__ = [
    # Errors
    "WalletError",
    "NotRegisteredError",
    "AlreadyExistsError",
    "WalletNotInitializedError",
    "AddressMismatchError",
    "ProtocolError",
    "ServerRejectedError",
    "DerivationFailedError",
    "UnsupportedMethodError",
    "RandomSourceUnavailableError",
    "InvalidParamsError",
    "InvalidRequestError",
    # Models
    "ClientBundle",
    "WalletCacheEntry",
    "SessionState",
    "WalletStatus",
    # Components
    "BundleStore",
    "WalletCache",
    "public_key_hash",
    "KeyDerivationProtocol",
    "derive_private_key",
    "EthAccountSigner",
    "SessionSigner",
    "WalletSession",
]
