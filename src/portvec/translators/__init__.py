"""Backend filter translators: one per native query dialect."""

from portvec.translators.base import FilterTranslator, NativeFilter
from portvec.translators.factory import available_translators, get_translator

__all__ = [
    "FilterTranslator",
    "NativeFilter",
    "available_translators",
    "get_translator",
]
