"""Exception hierarchy for the vector store layer."""

from __future__ import annotations

from typing import Any


class PortVecError(Exception):
    """Base class for every error raised by portvec."""


class SchemaError(PortVecError):
    """Invalid metadata schema declaration."""


# ---------------------------------------------------------------------------
# Filter compilation
# ---------------------------------------------------------------------------


class FilterError(PortVecError):
    """Base class for filter parse, validation and translation failures."""


class ParseError(FilterError):
    """Malformed filter text.

    Attributes:
        position: 0-based character offset where parsing failed.
        message: Human-readable reason.
    """

    def __init__(self, position: int, message: str):
        self.position = position
        self.message = message
        super().__init__(f"{message} (at position {position})")


class FilterValidationError(FilterError):
    """A filter does not fit the declared metadata schema."""


class UnknownFieldError(FilterValidationError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Unknown metadata field '{field}'")


class TypeMismatchError(FilterValidationError):
    def __init__(self, field: str, expected: str, actual: Any):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Field '{field}' expects {expected} values, "
            f"got {type(actual).__name__} {actual!r}"
        )


class UnsupportedOperatorError(FilterValidationError):
    def __init__(self, field: str, operator: str, field_type: str):
        self.field = field
        self.operator = operator
        self.field_type = field_type
        super().__init__(
            f"Operator '{operator}' is not supported for {field_type} field '{field}'"
        )


class UnsupportedFeatureError(FilterError):
    """The filter is valid but the target backend cannot express it."""

    def __init__(self, backend: str, feature: str):
        self.backend = backend
        self.feature = feature
        super().__init__(f"Backend '{backend}' does not support {feature}")


# ---------------------------------------------------------------------------
# External collaborators
# ---------------------------------------------------------------------------


class EmbeddingError(PortVecError):
    """The embedding provider failed or returned unusable output."""


class BackendIOError(PortVecError):
    """The backend client failed to read or write."""
