"""Translator factory: registry, lazy import, singleton cache."""

from __future__ import annotations

import importlib
import logging

from portvec.translators.base import FilterTranslator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Translator registry: (dialect, module_path, class_name)
# ---------------------------------------------------------------------------

_TRANSLATOR_REGISTRY: list[tuple[str, str, str]] = [
    ("memory", "portvec.translators.memory", "MemoryTranslator"),
    ("sql", "portvec.translators.sql", "SqlTranslator"),
    ("pgvector", "portvec.translators.sql", "PgVectorTranslator"),
    ("weaviate", "portvec.translators.weaviate", "WeaviateTranslator"),
    ("pinecone", "portvec.translators.pinecone", "PineconeTranslator"),
    ("qdrant", "portvec.translators.qdrant", "QdrantTranslator"),
    ("opensearch", "portvec.translators.opensearch", "OpenSearchTranslator"),
    ("redis", "portvec.translators.redis", "RedisTranslator"),
]

# Singleton cache
_translator_cache: dict[str, FilterTranslator] = {}


def get_translator(dialect: str, **kwargs) -> FilterTranslator:
    """Get the filter translator for a backend dialect.

    Args:
        dialect: One of ``available_translators()``.
        **kwargs: Passed to the translator constructor (field prefixes etc.).

    Returns:
        A ``FilterTranslator`` instance.
    """
    key = dialect.lower()

    if not kwargs and key in _translator_cache:
        return _translator_cache[key]

    for reg_key, module_path, cls_name in _TRANSLATOR_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            instance = cls(**kwargs)
            if not kwargs:
                _translator_cache[key] = instance
            logger.debug("Loaded %s translator for dialect '%s'", cls_name, key)
            return instance

    available = [k for k, _, _ in _TRANSLATOR_REGISTRY]
    raise ValueError(f"Unknown filter dialect '{dialect}'. Available: {available}")


def available_translators() -> list[str]:
    """Return registered dialect names."""
    return [k for k, _, _ in _TRANSLATOR_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _translator_cache.clear()
