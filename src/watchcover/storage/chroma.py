"""Chroma-based persistence layer."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol

from .base import StorageError

# Records are fetched by id only, so every document shares one placeholder
# vector and chromadb never runs its embedding model.
_PLACEHOLDER_EMBEDDING = [0.0]


class ChromaUnavailableError(StorageError):
    """Raised when the Chroma client cannot be constructed."""


class CollectionProtocol(Protocol):
    """Protocol for the minimal Chroma collection API used by watchcover."""

    def upsert(
        self,
        *,
        ids: Iterable[str],
        documents: Iterable[str],
        metadatas: Iterable[dict[str, Any]],
        embeddings: Iterable[list[float]],
    ) -> None:
        ...

    def get(
        self,
        *,
        ids: Iterable[str] | None = None,
        where: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> dict[str, list[Any]]:
        ...

    def delete(self, *, ids: Iterable[str]) -> None:
        ...


class ClientProtocol(Protocol):
    """Protocol for the minimal Chroma client API used by watchcover."""

    def get_or_create_collection(self, name: str) -> CollectionProtocol:
        ...


class ChromaKeyValueStore:
    """Store progress records as Chroma documents keyed by storage key."""

    def __init__(
        self,
        path: Path,
        *,
        collection_name: str = "watch_progress",
        client_factory: Callable[[], ClientProtocol] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._path = Path(path)
        self._collection_name = collection_name
        self._client_factory = client_factory or self._default_client_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._client: ClientProtocol | None = None
        self._collection: CollectionProtocol | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def collection_name(self) -> str:
        return self._collection_name

    def _default_client_factory(self) -> ClientProtocol:
        try:
            import chromadb
        except ImportError as exc:  # pragma: no cover - depends on environment
            raise ChromaUnavailableError(
                "chromadb package is not installed; install watchcover with persistence extras"
            ) from exc

        return chromadb.PersistentClient(path=str(self._path))

    def _ensure_collection(self) -> CollectionProtocol:
        if self._collection is None:
            try:
                client = self._client or self._client_factory()
                self._client = client
                self._collection = client.get_or_create_collection(self._collection_name)
            except StorageError:
                raise
            except Exception as exc:
                raise ChromaUnavailableError(
                    f"Unable to open Chroma collection '{self._collection_name}' at {self._path}: {exc}"
                ) from exc
        return self._collection

    def ping(self) -> bool:
        """Verify that the underlying collection can be obtained."""

        self._ensure_collection()
        return True

    def get(self, key: str) -> str | None:
        collection = self._ensure_collection()
        try:
            result = collection.get(ids=[key])
        except Exception as exc:
            raise StorageError(f"Failed to read '{key}' from Chroma: {exc}") from exc
        documents = result.get("documents") or []
        if not documents:
            return None
        return documents[0]

    def set(self, key: str, value: str) -> None:
        collection = self._ensure_collection()
        try:
            collection.upsert(
                ids=[key],
                documents=[value],
                metadatas=[{"key": key, "updated_at": self._clock().isoformat()}],
                embeddings=[_PLACEHOLDER_EMBEDDING],
            )
        except Exception as exc:
            raise StorageError(f"Failed to write '{key}' to Chroma: {exc}") from exc

    def delete(self, key: str) -> None:
        collection = self._ensure_collection()
        try:
            collection.delete(ids=[key])
        except Exception as exc:
            raise StorageError(f"Failed to delete '{key}' from Chroma: {exc}") from exc

    def keys(self, prefix: str | None = None) -> list[str]:
        """Return stored keys, optionally limited to a prefix."""

        collection = self._ensure_collection()
        try:
            result = collection.get()
        except Exception as exc:
            raise StorageError(f"Failed to list Chroma keys: {exc}") from exc
        keys = [str(key) for key in result.get("ids", [])]
        if prefix:
            keys = [key for key in keys if key.startswith(prefix)]
        return sorted(keys)


__all__ = ["ChromaKeyValueStore", "ChromaUnavailableError"]
