"""The translator interface.

Translators are independent implementations of one narrow capability:
turn a ``ValidatedFilter`` into a backend's native filter. They share no
base class; anything with a ``name`` and a matching ``translate`` qualifies.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from portvec.filters.validator import ValidatedFilter

NativeFilter = Any


@runtime_checkable
class FilterTranslator(Protocol):
    """Compiles validated filters for one backend family."""

    name: str

    def translate(self, validated: ValidatedFilter) -> NativeFilter:
        """Return the native filter for ``validated``.

        Raises:
            UnsupportedFeatureError: The backend cannot express a construct.
        """
        ...
