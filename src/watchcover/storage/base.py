"""Key-value persistence contract for tracked progress."""

from __future__ import annotations

from typing import Protocol


class StorageError(RuntimeError):
    """Raised when a storage backend cannot complete a read or write."""


class KeyValueStore(Protocol):
    """Minimal point read/write API the tracker persists through."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryStore:
    """Dict-backed store; contents live as long as the instance."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str | None = None) -> list[str]:
        return sorted(key for key in self._data if not prefix or key.startswith(prefix))

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


__all__ = ["KeyValueStore", "MemoryStore", "StorageError"]
