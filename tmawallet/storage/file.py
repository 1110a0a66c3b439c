"""JSON-file backed key-value storage used by the CLI."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Mapping

from .base import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)


class JsonFileStorage(KeyValueStorage):
    """Stores every key in a single JSON object on disk.

    Writes go to a sibling temp file which then replaces the original, so a
    crash mid-write leaves the previous contents intact. The file is created
    with owner-only permissions because it holds the client secret key.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def get_items(self, keys: Iterable[str]) -> Dict[str, str]:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
        return {key: data[key] for key in keys if key in data}

    async def set_items(self, items: Mapping[str, str]) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data.update(items)
            await asyncio.to_thread(self._write, data)

    async def remove_items(self, keys: Iterable[str]) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            changed = False
            for key in keys:
                if data.pop(key, None) is not None:
                    changed = True
            if changed:
                await asyncio.to_thread(self._write, data)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise StorageError(f"Failed to read storage file {self.path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StorageError(f"Storage file {self.path} does not contain a JSON object")
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageError(f"Failed to write storage file {self.path}: {exc}") from exc
        logger.debug(f"Wrote {len(data)} keys to {self.path}")
