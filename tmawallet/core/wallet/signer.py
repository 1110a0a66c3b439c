"""
Signing capability.

``EthAccountSigner`` wraps an eth-account ``LocalAccount`` built from a raw
private key. ``SessionSigner`` has the same async surface but derives a fresh
key from the wallet session for every call and drops it afterwards.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Union

from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct, encode_typed_data
from eth_utils import to_checksum_address, to_hex

from tmawallet.providers.rpc import to_quantity

from .errors import AddressMismatchError, InvalidParamsError, WalletError

if TYPE_CHECKING:
    from tmawallet.providers.rpc import JsonRpcProvider

    from .session import WalletSession


logger = logging.getLogger(__name__)

Message = Union[str, bytes]

_QUANTITY_FIELDS = (
    "value",
    "gas",
    "gasPrice",
    "maxFeePerGas",
    "maxPriorityFeePerGas",
    "nonce",
    "chainId",
    "type",
)
_FIELD_ALIASES = {"gasLimit": "gas", "input": "data"}
_PASSTHROUGH_FIELDS = ("to", "data", "accessList")


def encode_personal_message(message: Message) -> SignableMessage:
    """EIP-191 personal message. Strings are signed as their UTF-8 bytes, even when they look like hex."""
    if isinstance(message, bytes):
        return encode_defunct(primitive=message)
    return encode_defunct(text=message)


def normalize_transaction(tx: Mapping[str, Any], sender: str) -> Dict[str, Any]:
    """Turn a dapp-supplied transaction request into an eth-account transaction dict.

    Quantities become ints and ``to`` is checksummed. ``from`` must match the
    sender and is dropped.
    """
    if not isinstance(tx, Mapping):
        raise InvalidParamsError("Transaction must be an object")

    requested_from = tx.get("from")
    if requested_from and str(requested_from).lower() != sender.lower():
        raise AddressMismatchError(requested=str(requested_from), expected=sender)

    normalized: Dict[str, Any] = {}
    for key, value in tx.items():
        key = _FIELD_ALIASES.get(key, key)
        if value is None or key in normalized:
            continue
        try:
            if key in _QUANTITY_FIELDS:
                normalized[key] = to_quantity(value)
            elif key == "to":
                normalized[key] = to_checksum_address(value)
            elif key in _PASSTHROUGH_FIELDS:
                normalized[key] = value
        except ValueError as exc:
            raise InvalidParamsError(f"Invalid transaction field {key}: {value!r}") from exc
    return normalized


def to_rpc_transaction(tx: Mapping[str, Any], sender: str) -> Dict[str, Any]:
    """Inverse of ``normalize_transaction`` for JSON-RPC calls such as eth_estimateGas."""
    rpc_tx: Dict[str, Any] = {"from": sender}
    for key, value in tx.items():
        rpc_tx[key] = hex(value) if isinstance(value, int) else value
    return rpc_tx


class EthAccountSigner:
    """Signing capability over a raw 32-byte private key."""

    def __init__(self, private_key: bytes):
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_message(self, message: Message) -> str:
        signed = self._account.sign_message(encode_personal_message(message))
        return to_hex(signed.signature)

    def sign_typed_data(self, typed_data: Union[str, Mapping[str, Any]]) -> str:
        if isinstance(typed_data, str):
            try:
                typed_data = json.loads(typed_data)
            except ValueError as exc:
                raise InvalidParamsError("Typed data is not valid JSON") from exc
        signed = self._account.sign_message(encode_typed_data(full_message=dict(typed_data)))
        return to_hex(signed.signature)

    def sign_transaction(self, tx: Mapping[str, Any]) -> str:
        signed = self._account.sign_transaction(normalize_transaction(tx, self.address))
        return to_hex(signed.raw_transaction)

    async def populate_transaction(self, tx: Mapping[str, Any], rpc: "JsonRpcProvider") -> Dict[str, Any]:
        """Fill chainId, nonce, gas and gas price from the chain when the request omits them."""
        prepared = normalize_transaction(tx, self.address)
        if "chainId" not in prepared:
            prepared["chainId"] = await rpc.get_chain_id()
        if "nonce" not in prepared:
            prepared["nonce"] = await rpc.get_transaction_count(self.address, "pending")
        if "gas" not in prepared:
            prepared["gas"] = await rpc.estimate_gas(to_rpc_transaction(prepared, self.address))
        if not any(key in prepared for key in ("gasPrice", "maxFeePerGas")):
            prepared["gasPrice"] = await rpc.get_gas_price()
        return prepared

    async def send_transaction(self, tx: Mapping[str, Any], rpc: "JsonRpcProvider") -> str:
        prepared = await self.populate_transaction(tx, rpc)
        signed = self._account.sign_transaction(prepared)
        return await rpc.send_raw_transaction(to_hex(signed.raw_transaction))


SignerFactory = Callable[[bytes], EthAccountSigner]


class SessionSigner:
    """
    Signer backed live by a wallet session.

    Each operation asks the session for the private key, which re-runs the
    split-key derivation against the wallet API.
    """

    def __init__(
        self,
        session: "WalletSession",
        rpc: Optional["JsonRpcProvider"] = None,
        signer_factory: SignerFactory = EthAccountSigner,
    ):
        self.session = session
        self.rpc = rpc
        self._signer_factory = signer_factory

    async def _signer(self) -> EthAccountSigner:
        private_key = await self.session.access_private_key()
        return self._signer_factory(private_key)

    async def get_address(self) -> str:
        if self.session.wallet_address:
            return self.session.wallet_address
        return (await self._signer()).address

    async def sign_message(self, message: Message) -> str:
        return (await self._signer()).sign_message(message)

    async def sign_typed_data(self, typed_data: Union[str, Mapping[str, Any]]) -> str:
        return (await self._signer()).sign_typed_data(typed_data)

    async def sign_transaction(self, tx: Mapping[str, Any]) -> str:
        signer = await self._signer()
        if self.rpc is not None:
            return signer.sign_transaction(await signer.populate_transaction(tx, self.rpc))
        return signer.sign_transaction(tx)

    async def send_transaction(self, tx: Mapping[str, Any]) -> str:
        if self.rpc is None:
            raise WalletError("Signer has no chain connection to broadcast with")
        signer = await self._signer()
        tx_hash = await signer.send_transaction(tx, self.rpc)
        logger.info(f"Sent transaction {tx_hash} from {signer.address}")
        return tx_hash
