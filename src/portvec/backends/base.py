"""Abstract base class for backend clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from portvec.backends.schemas import ProvisionResult, RawHit, VectorRecord
from portvec.filters.schema import MetadataSchema


class BackendClient(ABC):
    """Interface for vector database backends.

    ``filter_dialect`` names the translator whose native filter ``query``
    accepts; the facade picks the translator from it.
    """

    filter_dialect: str = ""

    @abstractmethod
    def provision(self, schema: MetadataSchema) -> ProvisionResult:
        """Create the collection/index if it is missing.

        Must be idempotent. On an already provisioned backend it reports
        ``created=False`` and only adds the indexes or mappings ``schema``
        declares that are still missing, listing them in ``detail``.
        """

    @abstractmethod
    def upsert(self, records: list[VectorRecord]) -> int:
        """Insert records, replacing any with the same ID.

        Returns:
            Number of records written.
        """

    @abstractmethod
    def query(
        self,
        vector: list[float],
        top_k: int,
        native_filter: Any = None,
        similarity_threshold: float | None = None,
        timeout: float | None = None,
    ) -> list[RawHit]:
        """Return up to ``top_k`` nearest hits matching ``native_filter``.

        Args:
            vector: The query embedding.
            top_k: Maximum hits to return.
            native_filter: Output of this backend's translator, or ``None``.
            similarity_threshold: Optional minimum score.
            timeout: Seconds, passed through to the client where supported.
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of records in the backend."""

    @abstractmethod
    def delete(self, ids: list[str]) -> int:
        """Delete records by ID.

        Returns:
            Number of records deleted.
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove all records."""

    @classmethod
    def backend_name(cls) -> str:
        """Return human-readable backend name."""
        return cls.__name__
