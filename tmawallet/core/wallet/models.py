"""
Wallet data models.

The client bundle is the device-held half of the split key. Its public key
is only a lookup tag the server uses to find its own half; it is not an
elliptic-curve public key.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


# Persisted storage keys
REGISTERED_AT_KEY = "tmaw_registered_at"
CLIENT_PUBLIC_KEY_KEY = "tmaw_client_public_key"
CLIENT_SECRET_KEY_KEY = "tmaw_client_secret_key"
WALLET_ADDRESS_KEY = "tmaw_wallet_address"

BUNDLE_KEYS = (REGISTERED_AT_KEY, CLIENT_PUBLIC_KEY_KEY, CLIENT_SECRET_KEY_KEY)

KEY_SIZE = 32


class WalletStatus(str, Enum):
    """Lifecycle state of a wallet session."""
    UNREGISTERED = "unregistered"
    REGISTERED_NO_WALLET = "registered_no_wallet"
    REGISTERED_WITH_WALLET = "registered_with_wallet"


@dataclass(frozen=True)
class ClientBundle:
    """Client half of the key material: lookup tag, secret and creation time (ms)."""
    timestamp: Union[int, float]
    client_public_key: bytes
    client_secret_key: bytes

    def __repr__(self) -> str:
        return (
            f"ClientBundle(timestamp={self.timestamp}, "
            f"client_public_key={self.client_public_key.hex()}, client_secret_key=<redacted>)"
        )

    def to_storage(self) -> Dict[str, str]:
        """Convert to the persisted string fields."""
        return {
            REGISTERED_AT_KEY: str(self.timestamp),
            CLIENT_PUBLIC_KEY_KEY: self.client_public_key.hex(),
            CLIENT_SECRET_KEY_KEY: self.client_secret_key.hex(),
        }

    @classmethod
    def from_storage(cls, values: Dict[str, Any]) -> Optional["ClientBundle"]:
        """Rebuild a bundle from persisted fields, or None if any field is unusable."""
        registered_at = values.get(REGISTERED_AT_KEY)
        public_hex = values.get(CLIENT_PUBLIC_KEY_KEY)
        secret_hex = values.get(CLIENT_SECRET_KEY_KEY)

        if not all(isinstance(v, str) for v in (registered_at, public_hex, secret_hex)):
            return None
        if len(public_hex) != KEY_SIZE * 2 or len(secret_hex) != KEY_SIZE * 2:
            return None

        try:
            timestamp = float(registered_at)
            public_key = bytes.fromhex(public_hex)
            secret_key = bytes.fromhex(secret_hex)
        except ValueError:
            return None

        if len(public_key) != KEY_SIZE or len(secret_key) != KEY_SIZE:
            return None
        # NaN and inf fail this check too
        if not 0 < timestamp < float("inf"):
            return None

        return cls(
            timestamp=int(timestamp) if timestamp.is_integer() else timestamp,
            client_public_key=public_key,
            client_secret_key=secret_key,
        )


@dataclass(frozen=True)
class WalletCacheEntry:
    """Cached wallet address tagged with the hash of the bundle that produced it."""
    public_key_hash: str
    wallet_address: str

    DELIMITER = "|$|"

    def serialize(self) -> str:
        return f"{self.public_key_hash}{self.DELIMITER}{self.wallet_address}"

    @classmethod
    def parse(cls, raw: str) -> Optional["WalletCacheEntry"]:
        parts = raw.split(cls.DELIMITER)
        if len(parts) != 2 or not parts[0] or not parts[1]:
            return None
        return cls(public_key_hash=parts[0], wallet_address=parts[1])


@dataclass(frozen=True)
class SessionState:
    """Externally visible view of a wallet session."""
    registered: bool
    wallet_address: Optional[str] = None

    @property
    def status(self) -> WalletStatus:
        if not self.registered:
            return WalletStatus.UNREGISTERED
        if self.wallet_address is None:
            return WalletStatus.REGISTERED_NO_WALLET
        return WalletStatus.REGISTERED_WITH_WALLET

    def to_dict(self) -> Dict[str, Any]:
        return {"registered": self.registered, "walletAddress": self.wallet_address}
