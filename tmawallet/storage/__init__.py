from .base import KeyValueStorage, StorageError
from .file import JsonFileStorage
from .memory import MemoryStorage

__all__ = [
    "KeyValueStorage",
    "StorageError",
    "JsonFileStorage",
    "MemoryStorage",
]
