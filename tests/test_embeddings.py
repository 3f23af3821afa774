"""Tests for embedding providers: mock transports, no network calls."""

from __future__ import annotations

import json
import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import numpy as np
import pytest

from conftest import MockEmbedder
from portvec.embeddings.base import EmbeddingProvider
from portvec.embeddings.factory import (
    available_providers,
    clear_cache,
    get_embedding_provider,
    provider_kwargs,
)
from portvec.embeddings.ollama_provider import OllamaEmbeddingProvider
from portvec.errors import EmbeddingError

# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class TestEmbeddingProviderABC:
    def test_cannot_instantiate_base(self):
        with pytest.raises(TypeError):
            EmbeddingProvider()  # type: ignore[abstract]

    def test_provider_name(self):
        assert MockEmbedder.provider_name() == "MockEmbedder"

    def test_embed_single_text(self):
        provider = MockEmbedder(dim=16)
        assert provider.embed("hello") == provider.embed_texts(["hello"])[0]
        assert len(provider.embed("hello")) == 16

    def test_deterministic(self):
        provider = MockEmbedder()
        assert provider.embed_query("same text") == provider.embed_query("same text")
        assert provider.embed_query("text one") != provider.embed_query("text two")


# ---------------------------------------------------------------------------
# Ollama (httpx mock transport)
# ---------------------------------------------------------------------------


def _ollama(handler) -> OllamaEmbeddingProvider:
    provider = OllamaEmbeddingProvider(model="nomic-embed-text", dimension=3)
    provider._client = httpx.Client(
        base_url=provider.base_url,
        transport=httpx.MockTransport(handler),
    )
    return provider


class TestOllamaProvider:
    def test_batch_endpoint(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]})

        provider = _ollama(handler)
        assert provider.embed_texts(["a", "b"]) == [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]
        assert seen == [("/api/embed", {"model": "nomic-embed-text", "input": ["a", "b"]})]

    def test_empty_batch_makes_no_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("unexpected request")

        assert _ollama(handler).embed_texts([]) == []

    def test_falls_back_to_single_endpoint_on_404(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/embed":
                return httpx.Response(404)
            prompt = json.loads(request.content)["prompt"]
            return httpx.Response(200, json={"embedding": [float(len(prompt)), 0.0, 0.0]})

        assert _ollama(handler).embed_texts(["a", "bbb"]) == [[1.0, 0.0, 0.0], [3.0, 0.0, 0.0]]

    def test_query_uses_single_endpoint(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/embeddings"
            return httpx.Response(200, json={"embedding": [1.0, 2.0, 3.0]})

        assert _ollama(handler).embed_query("q") == [1.0, 2.0, 3.0]

    def test_server_error(self):
        provider = _ollama(lambda request: httpx.Response(500))
        with pytest.raises(EmbeddingError, match="HTTP 500"):
            provider.embed_texts(["a"])

    def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(EmbeddingError, match="request failed"):
            _ollama(handler).embed_query("q")

    def test_wrong_batch_size(self):
        provider = _ollama(lambda request: httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3]]}))
        with pytest.raises(EmbeddingError, match="1 embeddings for 2 texts"):
            provider.embed_texts(["a", "b"])

    def test_missing_embedding_field(self):
        provider = _ollama(lambda request: httpx.Response(200, json={"error": "model not found"}))
        with pytest.raises(EmbeddingError, match="no 'embedding'"):
            provider.embed_query("q")

    def test_dimension(self):
        assert OllamaEmbeddingProvider(dimension=384).dimension == 384


# ---------------------------------------------------------------------------
# OpenAI (mocked client)
# ---------------------------------------------------------------------------


class TestOpenAIProvider:
    @pytest.fixture
    def provider(self):
        pytest.importorskip("openai")
        from portvec.embeddings.openai_provider import OpenAIEmbeddingProvider

        provider = OpenAIEmbeddingProvider(api_key="test-key")
        provider._client = MagicMock()
        return provider

    def test_default_dimension(self, provider):
        assert provider.dimension == 1536

    def test_orders_by_index(self, provider):
        provider._client.embeddings.create.return_value = SimpleNamespace(data=[
            SimpleNamespace(index=1, embedding=[0.2]),
            SimpleNamespace(index=0, embedding=[0.1]),
        ])
        assert provider.embed_texts(["a", "b"]) == [[0.1], [0.2]]

    def test_api_error_is_wrapped(self, provider):
        import openai

        provider._client.embeddings.create.side_effect = openai.OpenAIError("quota exceeded")
        with pytest.raises(EmbeddingError, match="quota exceeded"):
            provider.embed_query("q")


# ---------------------------------------------------------------------------
# HuggingFace (stand-in sentence_transformers module)
# ---------------------------------------------------------------------------


class FakeSentenceTransformer:
    def __init__(self, model: str, device: str | None = None):
        self.model = model
        self.encoded: list[list[str]] = []

    def get_sentence_embedding_dimension(self) -> int:
        return 3

    def encode(self, texts, batch_size=32, show_progress_bar=True, normalize_embeddings=False):
        assert normalize_embeddings
        if any(t.endswith("boom") for t in texts):
            raise RuntimeError("CUDA out of memory")
        self.encoded.append(list(texts))
        return [np.array([float(len(t)), 0.0, 0.0]) for t in texts]


class TestHuggingFaceProvider:
    @pytest.fixture
    def provider(self, monkeypatch):
        monkeypatch.setitem(
            sys.modules,
            "sentence_transformers",
            SimpleNamespace(SentenceTransformer=FakeSentenceTransformer),
        )
        from portvec.embeddings.huggingface_provider import HuggingFaceEmbeddingProvider

        return HuggingFaceEmbeddingProvider(
            model="intfloat/e5-small-v2", query_prefix="query: ", document_prefix="passage: "
        )

    def test_dimension_from_model(self, provider):
        assert provider.dimension == 3

    def test_prefixes(self, provider):
        provider.embed_texts(["tulips"])
        provider.embed_query("flowers")
        assert provider._model.encoded == [["passage: tulips"], ["query: flowers"]]

    def test_returns_lists(self, provider):
        assert provider.embed_query("ab") == [len("query: ab"), 0.0, 0.0]

    def test_empty_batch(self, provider):
        assert provider.embed_texts([]) == []
        assert provider._model.encoded == []

    def test_encode_failure(self, provider):
        with pytest.raises(EmbeddingError, match="out of memory"):
            provider.embed_query("boom")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestEmbeddingFactory:
    def setup_method(self):
        clear_cache()

    def test_available_providers(self):
        assert available_providers() == ["ollama", "openai", "huggingface"]

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown embedding provider"):
            get_embedding_provider("nonexistent")

    def test_factory_caching(self):
        with patch("portvec.embeddings.factory.importlib") as mock_importlib:
            mock_mod = MagicMock()
            mock_mod.OllamaEmbeddingProvider = MockEmbedder
            mock_importlib.import_module.return_value = mock_mod

            p1 = get_embedding_provider("ollama")
            p2 = get_embedding_provider("Ollama")
            assert p1 is p2

    def test_factory_kwargs_bypass_cache(self):
        with patch("portvec.embeddings.factory.importlib") as mock_importlib:
            mock_mod = MagicMock()
            mock_mod.OllamaEmbeddingProvider = MockEmbedder
            mock_importlib.import_module.return_value = mock_mod

            p1 = get_embedding_provider("ollama")
            p2 = get_embedding_provider("ollama", dim=8)
            assert p1 is not p2
            assert p2.dimension == 8

    @pytest.mark.parametrize("provider, model, dimension, expected", [
        ("ollama", None, 768, {"dimension": 768}),
        ("openai", "text-embedding-3-large", 256, {"model": "text-embedding-3-large", "dimensions": 256}),
        ("huggingface", "all-MiniLM-L6-v2", 384, {"model": "all-MiniLM-L6-v2"}),
        ("ollama", None, None, {}),
    ])
    def test_provider_kwargs(self, provider, model, dimension, expected):
        assert provider_kwargs(provider, model, dimension) == expected
