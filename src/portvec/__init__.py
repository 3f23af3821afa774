"""portvec: portable vector-store abstraction with a portable filter language."""

from portvec.errors import (
    BackendIOError,
    EmbeddingError,
    ParseError,
    PortVecError,
    TypeMismatchError,
    UnknownFieldError,
    UnsupportedFeatureError,
    UnsupportedOperatorError,
)
from portvec.filters import FieldType, MetadataField, MetadataSchema, parse, validate
from portvec.schemas import Document, SearchRequest, SearchResult
from portvec.store import VectorStore

__version__ = "0.1.0"

__all__ = [
    "BackendIOError",
    "Document",
    "EmbeddingError",
    "FieldType",
    "MetadataField",
    "MetadataSchema",
    "ParseError",
    "PortVecError",
    "SearchRequest",
    "SearchResult",
    "TypeMismatchError",
    "UnknownFieldError",
    "UnsupportedFeatureError",
    "UnsupportedOperatorError",
    "VectorStore",
    "parse",
    "validate",
]
