from abc import ABC, abstractmethod
from typing import Dict, Iterable, Mapping, Optional


class KeyValueStorage(ABC):
    """Async string-to-string storage with batched access.

    Backends give no atomicity guarantee beyond a single batched call.
    Missing keys are simply absent from ``get_items`` results.
    """

    @abstractmethod
    async def get_items(self, keys: Iterable[str]) -> Dict[str, str]:
        """Return the stored values for the keys that exist"""
        pass

    @abstractmethod
    async def set_items(self, items: Mapping[str, str]) -> None:
        """Store every key/value pair in one batch"""
        pass

    @abstractmethod
    async def remove_items(self, keys: Iterable[str]) -> None:
        """Remove the keys; unknown keys are ignored"""
        pass

    async def get_item(self, key: str) -> Optional[str]:
        values = await self.get_items([key])
        return values.get(key)

    async def set_item(self, key: str, value: str) -> None:
        await self.set_items({key: value})

    async def remove_item(self, key: str) -> None:
        await self.remove_items([key])


class StorageError(Exception):
    """Raised when a storage backend cannot read or write its data."""
    pass
