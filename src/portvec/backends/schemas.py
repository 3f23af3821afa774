"""Data models exchanged with backend clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class VectorRecord:
    """A document with its embedding, ready for storage."""

    id: str
    content: str
    embedding: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RawHit:
    """A single hit as returned by a backend, before mapping to ``SearchResult``."""

    id: str
    content: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)
    embedding: list[float] | None = None


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome of the idempotent provisioning step.

    Attributes:
        backend: Backend name.
        collection: Collection / index the store writes to.
        created: ``True`` if this call created the collection.
        detail: Extra notes (e.g. payload indexes created).
    """

    backend: str
    collection: str
    created: bool
    detail: list[str] = field(default_factory=list)
