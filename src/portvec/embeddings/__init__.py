"""Embedding providers: Ollama, OpenAI, HuggingFace."""

from portvec.embeddings.base import EmbeddingProvider
from portvec.embeddings.factory import available_providers, get_embedding_provider

__all__ = [
    "EmbeddingProvider",
    "available_providers",
    "get_embedding_provider",
]
