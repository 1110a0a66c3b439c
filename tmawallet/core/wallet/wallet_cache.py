import logging
import zlib
from typing import Optional

from tmawallet.storage import KeyValueStorage

from .models import WALLET_ADDRESS_KEY, WalletCacheEntry


logger = logging.getLogger(__name__)


def public_key_hash(client_public_key: bytes) -> str:
    """Fast integrity tag binding a cached address to its bundle (not a security boundary)."""
    return format(zlib.crc32(client_public_key), "x")


class WalletCache:
    """Persists the derived wallet address, trusted only for the bundle that produced it."""

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    async def lookup(self, client_public_key: bytes) -> Optional[str]:
        raw = await self.storage.get_item(WALLET_ADDRESS_KEY)
        if not raw:
            return None

        entry = WalletCacheEntry.parse(raw)
        if entry is None:
            logger.warning("Ignoring malformed wallet address cache entry")
            return None

        if entry.public_key_hash != public_key_hash(client_public_key):
            logger.info("Cached wallet address belongs to a different bundle, ignoring")
            return None

        return entry.wallet_address

    async def store(self, client_public_key: bytes, wallet_address: str) -> None:
        entry = WalletCacheEntry(
            public_key_hash=public_key_hash(client_public_key),
            wallet_address=wallet_address,
        )
        await self.storage.set_item(WALLET_ADDRESS_KEY, entry.serialize())

    async def clear(self) -> None:
        await self.storage.remove_item(WALLET_ADDRESS_KEY)
