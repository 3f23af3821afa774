"""Data models for the vector store facade."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from portvec.filters.ast import FilterExpression


@dataclass
class Document:
    """Text with metadata, optionally with a precomputed embedding.

    ``id`` is generated on ``add`` when absent; ``embedding`` is computed
    from ``content`` when absent.
    """

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    embedding: list[float] | None = None


@dataclass
class SearchRequest:
    """Input to ``VectorStore.similarity_search``.

    Attributes:
        query: Text to embed and search with.
        top_k: Maximum number of results, must be positive.
        similarity_threshold: Optional minimum score in ``[0, 1]``.
        filter: Portable filter text or a prebuilt ``FilterExpression``.
    """

    query: str
    top_k: int = 4
    similarity_threshold: float | None = None
    filter: str | FilterExpression | None = None

    def __post_init__(self) -> None:
        if isinstance(self.top_k, bool) or not isinstance(self.top_k, int) or self.top_k <= 0:
            raise ValueError(f"top_k must be a positive integer, got {self.top_k!r}")
        if self.similarity_threshold is not None and not (
            0.0 <= self.similarity_threshold <= 1.0
        ):
            raise ValueError(
                f"similarity_threshold must be within [0, 1], got {self.similarity_threshold!r}"
            )


@dataclass(frozen=True)
class SearchResult:
    """A document and its similarity score."""

    document: Document
    score: float
