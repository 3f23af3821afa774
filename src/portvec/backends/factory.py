"""Backend factory: registry, lazy import, singleton cache."""

from __future__ import annotations

import importlib
import logging

from portvec.backends.base import BackendClient

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Backend registry: (backend_key, module_path, class_name)
# ---------------------------------------------------------------------------

_BACKEND_REGISTRY: list[tuple[str, str, str]] = [
    ("faiss", "portvec.backends.faiss_store", "FAISSStore"),
    ("qdrant", "portvec.backends.qdrant_store", "QdrantStore"),
    ("opensearch", "portvec.backends.opensearch_store", "OpenSearchStore"),
]

# Singleton cache
_backend_cache: dict[str, BackendClient] = {}


def get_backend(
    provider: str = "faiss",
    **kwargs,
) -> BackendClient:
    """Get a backend client by name.

    Args:
        provider: One of ``faiss``, ``qdrant``, ``opensearch``.
        **kwargs: Passed to the backend constructor.

    Returns:
        A ``BackendClient`` instance.
    """
    key = provider.lower()

    if not kwargs and key in _backend_cache:
        return _backend_cache[key]

    for reg_key, module_path, cls_name in _BACKEND_REGISTRY:
        if reg_key == key:
            mod = importlib.import_module(module_path)
            cls = getattr(mod, cls_name)
            instance = cls(**kwargs)
            if not kwargs:
                _backend_cache[key] = instance
            return instance

    available = [k for k, _, _ in _BACKEND_REGISTRY]
    raise ValueError(f"Unknown backend '{provider}'. Available: {available}")


def available_backends() -> list[str]:
    """Return names of registered backends."""
    return [k for k, _, _ in _BACKEND_REGISTRY]


def clear_cache() -> None:
    """Clear singleton cache (for testing)."""
    _backend_cache.clear()
