"""
Durable local key/value storage for dashboard state that must survive restarts.
Values are strings, read and written wholesale. Same get/set/delete surface as
redis.asyncio.Redis, so either can back the notification inbox.
"""
import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> object: ...
    async def delete(self, key: str) -> object: ...


class FileStorage:
    """All keys live in one JSON object file. Writes replace the file atomically."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Storage file %s is unreadable, treating it as empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold an object, treating it as empty", self.path)
            return {}
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        os.replace(tmp, self.path)

    def _set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _delete(self, key: str) -> int:
        data = self._read_all()
        if key not in data:
            return 0
        del data[key]
        self._write_all(data)
        return 1

    async def get(self, key: str) -> str | None:
        data = await asyncio.to_thread(self._read_all)
        value = data.get(key)
        return value if isinstance(value, str) else None

    async def set(self, key: str, value: str) -> bool:
        await asyncio.to_thread(self._set, key, value)
        return True

    async def delete(self, key: str) -> int:
        return await asyncio.to_thread(self._delete, key)
