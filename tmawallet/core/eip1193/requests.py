"""
Canonical request shapes.

Provider calls are normalized here before dispatch. ``eth_sign`` takes
``[address, message]`` while ``personal_sign`` takes ``[message, address]``;
both become a ``SignMessageRequest(address, message)``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from ..wallet.errors import InvalidParamsError


ACCOUNT_METHODS = frozenset({"eth_accounts", "eth_requestAccounts"})
CHAIN_ID_METHOD = "eth_chainId"
SIGN_METHODS = frozenset({"eth_sign", "personal_sign"})
SEND_TRANSACTION_METHOD = "eth_sendTransaction"


@dataclass(frozen=True)
class AccountsRequest:
    method: str


@dataclass(frozen=True)
class ChainIdRequest:
    method: str = CHAIN_ID_METHOD


@dataclass(frozen=True)
class SignMessageRequest:
    method: str
    address: str
    message: str


@dataclass(frozen=True)
class SendTransactionRequest:
    transaction: Dict[str, Any]
    method: str = SEND_TRANSACTION_METHOD


@dataclass(frozen=True)
class PassthroughRequest:
    method: str
    params: List[Any] = field(default_factory=list)


ProviderRequest = Union[
    AccountsRequest,
    ChainIdRequest,
    SignMessageRequest,
    SendTransactionRequest,
    PassthroughRequest,
]


def _require_str(value: Any, name: str, method: str) -> str:
    if not isinstance(value, str):
        raise InvalidParamsError(f"{method}: {name} must be a string")
    return value


def parse_request(method: str, params: Optional[Sequence[Any]] = None) -> ProviderRequest:
    """Map ``(method, params)`` onto its canonical request shape."""
    params = list(params or [])

    if method in ACCOUNT_METHODS:
        return AccountsRequest(method=method)

    if method == CHAIN_ID_METHOD:
        return ChainIdRequest()

    if method in SIGN_METHODS:
        if len(params) < 2:
            raise InvalidParamsError(f"{method} expects two parameters")
        if method == "personal_sign":
            message, address = params[0], params[1]
        else:
            address, message = params[0], params[1]
        return SignMessageRequest(
            method=method,
            address=_require_str(address, "address", method),
            message=_require_str(message, "message", method),
        )

    if method == SEND_TRANSACTION_METHOD:
        if not params or not isinstance(params[0], dict):
            raise InvalidParamsError(f"{method} expects a transaction object")
        return SendTransactionRequest(transaction=dict(params[0]))

    return PassthroughRequest(method=method, params=params)
