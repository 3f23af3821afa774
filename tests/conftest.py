"""Shared fixtures for tests: synthetic schema and embedder, no network calls."""

from __future__ import annotations

import hashlib

import numpy as np
import pytest

from portvec.embeddings.base import EmbeddingProvider
from portvec.filters.schema import FieldType, MetadataField, MetadataSchema
from portvec.schemas import Document

DIM = 32


# ---------------------------------------------------------------------------
# Deterministic embedder
# ---------------------------------------------------------------------------


class MockEmbedder(EmbeddingProvider):
    """Hash-based embeddings: same text, same vector."""

    def __init__(self, dim: int = DIM):
        self._dim = dim
        self.text_calls = 0
        self.query_calls = 0

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.text_calls += 1
        return [self._hash_embed(t) for t in texts]

    def embed_query(self, query: str) -> list[float]:
        self.query_calls += 1
        return self._hash_embed(query)

    @property
    def dimension(self) -> int:
        return self._dim

    def _hash_embed(self, text: str) -> list[float]:
        h = hashlib.sha256(text.encode()).digest()
        vec = np.array([(h[i % len(h)] / 255.0) * 2 - 1 for i in range(self._dim)], dtype=np.float32)
        vec /= np.linalg.norm(vec)
        return vec.tolist()


# ---------------------------------------------------------------------------
# Schema and documents
# ---------------------------------------------------------------------------


@pytest.fixture
def schema() -> MetadataSchema:
    return MetadataSchema([
        MetadataField("country", FieldType.TEXT),
        MetadataField("genre", FieldType.TEXT),
        MetadataField("year", FieldType.NUMBER),
        MetadataField("rating", FieldType.NUMBER),
        MetadataField("published", FieldType.BOOLEAN),
    ])


@pytest.fixture
def embedder() -> MockEmbedder:
    return MockEmbedder()


@pytest.fixture
def films() -> list[Document]:
    return [
        Document("A slow drama about tulip growers", {"country": "NL", "genre": "drama", "year": 2021, "rating": 7.5, "published": True}, id="nl-2021"),
        Document("Rainy London detective story", {"country": "UK", "genre": "crime", "year": 2019, "rating": 8.1, "published": True}, id="uk-2019"),
        Document("Scottish comedy about a lost sheep", {"country": "UK", "genre": "comedy", "year": 2023, "rating": 6.2, "published": False}, id="uk-2023"),
        Document("French cooking documentary", {"country": "FR", "genre": "documentary", "year": 2022, "rating": 7.9, "published": True}, id="fr-2022"),
        Document("Amsterdam canal heist", {"country": "NL", "genre": "crime", "year": 2018, "rating": 6.8, "published": True}, id="nl-2018"),
        Document("Berlin techno coming-of-age film", {"country": "DE", "genre": "drama", "year": 2020, "rating": 7.1, "published": False}, id="de-2020"),
        Document("Welsh mining town drama", {"country": "UK", "genre": "drama", "year": 2020, "rating": 7.7, "published": True}, id="uk-2020"),
    ]
