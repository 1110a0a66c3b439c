"""
Wallet error taxonomy.

Every error carries an EIP-1193 / JSON-RPC error code so the provider
surface can hand a structured rejection to the hosted application.
"""

from typing import Any, Dict, Optional


# EIP-1193 provider error codes
UNAUTHORIZED = 4100
UNSUPPORTED_METHOD = 4200

# JSON-RPC 2.0 error codes
INVALID_REQUEST = -32600
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class WalletError(Exception):
    """Base exception for wallet errors."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_rpc_error(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class NotRegisteredError(WalletError):
    """No client bundle exists on this device."""

    code = UNAUTHORIZED

    def __init__(self, message: str = "Client bundle does not exist"):
        super().__init__(message)


class AlreadyExistsError(WalletError):
    """A client bundle already exists and would be overwritten."""

    def __init__(self, message: str = "Client bundle already exists"):
        super().__init__(message)


class WalletNotInitializedError(WalletError):
    """The bundle exists but no wallet address has been derived yet."""

    code = UNAUTHORIZED

    def __init__(self, message: str = "Wallet not initialized"):
        super().__init__(message)


class AddressMismatchError(WalletError):
    """Requested account differs from the session wallet."""

    code = UNAUTHORIZED

    def __init__(self, requested: Optional[str] = None, expected: Optional[str] = None):
        super().__init__("Address mismatch", data={"requested": requested, "expected": expected})
        self.requested = requested
        self.expected = expected


class ProtocolError(WalletError):
    """The wallet API answered with something other than the wire contract."""
    pass


class ServerRejectedError(WalletError):
    """The wallet API answered ``{result: false, error}``."""

    def __init__(self, message: str):
        super().__init__(message)


class DerivationFailedError(WalletError):
    """The intermediary key could not be fetched (transport failure)."""
    pass


class UnsupportedMethodError(WalletError):
    """The provider cannot serve the requested method."""

    code = UNSUPPORTED_METHOD

    def __init__(self, method: str):
        super().__init__(f"Unsupported method: {method}")
        self.method = method


class RandomSourceUnavailableError(WalletError):
    """No cryptographically secure random source is available."""

    def __init__(self, message: str = "No cryptographically secure random source available"):
        super().__init__(message)


class InvalidParamsError(WalletError):
    """Request parameters do not match the method's expected shape."""

    code = INVALID_PARAMS


class InvalidRequestError(WalletError):
    """The request itself is malformed (e.g. no method)."""

    code = INVALID_REQUEST
