"""HuggingFace/sentence-transformers embedding provider.

Runs locally via ``sentence-transformers``. Requires the ``huggingface`` extra.
Asymmetric retrieval models (E5, BGE) expect different prefixes on queries
and passages; pass them as ``query_prefix`` / ``document_prefix``.
"""

from __future__ import annotations

import logging
from typing import Any

from portvec.embeddings.base import EmbeddingProvider
from portvec.errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "all-MiniLM-L6-v2"


class HuggingFaceEmbeddingProvider(EmbeddingProvider):
    """Embed text locally; vectors are L2-normalised for cosine backends."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        device: str | None = None,
        query_prefix: str = "",
        document_prefix: str = "",
        batch_size: int = 32,
    ):
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as exc:
            raise ImportError(
                "sentence-transformers required: pip install portvec[huggingface]"
            ) from exc

        self._model_name = model
        self._query_prefix = query_prefix
        self._document_prefix = document_prefix
        self._batch_size = batch_size
        self._model: Any = SentenceTransformer(model, device=device)
        self._dim: int = self._model.get_sentence_embedding_dimension()
        logger.info("Loaded HF model %s (dim=%d)", model, self._dim)

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return self._encode([self._document_prefix + t for t in texts])

    def embed_query(self, query: str) -> list[float]:
        return self._encode([self._query_prefix + query])[0]

    @property
    def dimension(self) -> int:
        return self._dim

    def _encode(self, texts: list[str]) -> list[list[float]]:
        try:
            vectors = self._model.encode(
                texts,
                batch_size=self._batch_size,
                show_progress_bar=False,
                normalize_embeddings=True,
            )
        except (RuntimeError, ValueError) as exc:
            raise EmbeddingError(f"{self._model_name} failed to encode: {exc}") from exc
        return [vec.tolist() for vec in vectors]
