"""OpenAI embedding provider: text-embedding-3-small/large.

Requires the ``openai`` extra and an API key via the ``OPENAI_API_KEY``
environment variable.
"""

from __future__ import annotations

import logging
from typing import Any

from portvec.embeddings.base import EmbeddingProvider
from portvec.errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"

_DIMENSION_MAP = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

BATCH_SIZE = 2048  # OpenAI max batch size


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed text via the OpenAI Embeddings API."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        dimensions: int | None = None,
    ):
        try:
            import openai
        except ImportError as exc:
            raise ImportError("openai package required: pip install portvec[openai]") from exc

        self.model = model
        self._openai_error = openai.OpenAIError
        self._dimensions = dimensions or _DIMENSION_MAP.get(model, 1536)
        self._client: Any = openai.OpenAI(api_key=api_key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        for i in range(0, len(texts), BATCH_SIZE):
            batch = texts[i : i + BATCH_SIZE]
            resp = self._create(batch)
            # Sort by index to guarantee order
            sorted_data = sorted(resp.data, key=lambda x: x.index)
            all_embeddings.extend([d.embedding for d in sorted_data])

        return all_embeddings

    def embed_query(self, query: str) -> list[float]:
        return self._create([query]).data[0].embedding

    @property
    def dimension(self) -> int:
        return self._dimensions

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create(self, batch: list[str]) -> Any:
        try:
            return self._client.embeddings.create(model=self.model, input=batch)
        except self._openai_error as exc:
            raise EmbeddingError(f"OpenAI embeddings request failed: {exc}") from exc
