from typing import Dict, Iterable, Mapping, Optional

from .base import KeyValueStorage


class MemoryStorage(KeyValueStorage):
    """Process-local storage, mostly useful for tests and short-lived sessions"""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get_items(self, keys: Iterable[str]) -> Dict[str, str]:
        return {key: self._data[key] for key in keys if key in self._data}

    async def set_items(self, items: Mapping[str, str]) -> None:
        self._data.update(items)

    async def remove_items(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)

    def size(self) -> int:
        return len(self._data)
