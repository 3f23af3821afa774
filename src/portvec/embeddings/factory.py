"""Resolve the embedding provider named in settings.

Providers are imported only when first requested, so a FAISS-only install
never needs ``openai`` or ``sentence-transformers``. The vector width a
provider reports is what ``VectorStore.from_settings`` hands to the backend.
"""

from __future__ import annotations

import importlib
import logging

from portvec.embeddings.base import EmbeddingProvider

logger = logging.getLogger(__name__)

# provider key -> (module path, class name)
_PROVIDERS: dict[str, tuple[str, str]] = {
    "ollama": ("portvec.embeddings.ollama_provider", "OllamaEmbeddingProvider"),
    "openai": ("portvec.embeddings.openai_provider", "OpenAIEmbeddingProvider"),
    "huggingface": ("portvec.embeddings.huggingface_provider", "HuggingFaceEmbeddingProvider"),
}

# Default-configured providers, shared by every store that asks by name only
_shared: dict[str, EmbeddingProvider] = {}


def get_embedding_provider(provider: str = "ollama", **kwargs) -> EmbeddingProvider:
    """Return the embedding provider registered as ``provider``.

    Calls without constructor arguments share one instance per provider, so
    stores built from the same settings reuse one HTTP client or one loaded
    model. Any ``kwargs`` produce a fresh, unshared instance.

    Raises:
        ValueError: ``provider`` is not registered.
    """
    key = provider.lower()
    if not kwargs and key in _shared:
        return _shared[key]

    try:
        module_path, class_name = _PROVIDERS[key]
    except KeyError:
        raise ValueError(
            f"Unknown embedding provider '{provider}'. Available: {available_providers()}"
        ) from None

    provider_cls = getattr(importlib.import_module(module_path), class_name)
    instance = provider_cls(**kwargs)
    logger.debug("Created %s embedding provider (dim=%s)", key, instance.dimension)
    if not kwargs:
        _shared[key] = instance
    return instance


def provider_kwargs(provider: str, model: str | None, dimension: int | None) -> dict:
    """Map the ``embedding`` settings section onto one provider's constructor."""
    key = provider.lower()
    kwargs: dict = {}
    if model:
        kwargs["model"] = model
    if dimension and key == "ollama":
        kwargs["dimension"] = dimension
    elif dimension and key == "openai":
        kwargs["dimensions"] = dimension
    # huggingface reads the dimension from the loaded model
    return kwargs


def available_providers() -> list[str]:
    return list(_PROVIDERS)


def clear_cache() -> None:
    """Forget shared provider instances."""
    _shared.clear()
