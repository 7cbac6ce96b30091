"""Storage abstractions for watchcover."""

from .base import KeyValueStore, MemoryStore, StorageError
from .chroma import ChromaKeyValueStore, ChromaUnavailableError

__all__ = [
    "ChromaKeyValueStore",
    "ChromaUnavailableError",
    "KeyValueStore",
    "MemoryStore",
    "StorageError",
]
