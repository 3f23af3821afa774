"""Ollama embedding provider: local-first, no API keys needed.

Uses the Ollama REST API (http://localhost:11434) with models like
``nomic-embed-text``, ``mxbai-embed-large``, etc.
"""

from __future__ import annotations

import logging

import httpx

from portvec.embeddings.base import EmbeddingProvider
from portvec.errors import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts.

        Ollama's /api/embed endpoint accepts batches since v0.5. A 404 from an
        older server falls back to one /api/embeddings call per text.
        """
        if not texts:
            return []

        try:
            resp = self._client.post(
                "/api/embed",
                json={"model": self.model, "input": texts},
            )
        except httpx.HTTPError as exc:
            raise EmbeddingError(f"Ollama request failed: {exc}") from exc

        if resp.status_code == 404:
            logger.info("Ollama /api/embed unavailable, embedding %d texts one by one", len(texts))
            return [self._embed_single(text) for text in texts]

        embeddings = self._json(resp).get("embeddings")
        if embeddings is None or len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Ollama returned {len(embeddings or [])} embeddings for {len(texts)} texts"
            )
        return embeddings

    def embed_query(self, query: str) -> list[float]:
        return self._embed_single(query)

    @property
    def dimension(self) -> int:
        return self._dimension

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _embed_single(self, text: str) -> list[float]:
        try:
            resp = self._client.post(
                "/api/embeddings",
                json={"model": self.model, "prompt": text},
            )
        except httpx.HTTPError as exc:
            raise EmbeddingError(f"Ollama request failed: {exc}") from exc

        data = self._json(resp)
        if "embedding" not in data:
            raise EmbeddingError("Ollama response has no 'embedding' field")
        return data["embedding"]

    @staticmethod
    def _json(resp: httpx.Response) -> dict:
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise EmbeddingError(
                f"Ollama returned HTTP {exc.response.status_code}"
            ) from exc
        return resp.json()
