"""Vector store facade: embed, compile filters, query any backend.

Example:
    >>> store = VectorStore(
    ...     backend=FAISSStore(dimension=384),
    ...     embedding_provider=provider,
    ...     schema=MetadataSchema([
    ...         MetadataField("country", FieldType.TEXT),
    ...         MetadataField("year", FieldType.NUMBER),
    ...     ]),
    ... )
    >>> store.add([Document("Tulip fields", {"country": "NL", "year": 2021})])
    >>> store.search("flowers", top_k=5, filter_expression="year >= 2020")
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from portvec.backends.base import BackendClient
from portvec.backends.factory import get_backend
from portvec.backends.schemas import ProvisionResult, RawHit, VectorRecord
from portvec.config import SearchSettings, Settings, VectorStoreSettings, load_settings
from portvec.embeddings.base import EmbeddingProvider
from portvec.embeddings.factory import get_embedding_provider, provider_kwargs
from portvec.errors import BackendIOError, EmbeddingError, PortVecError
from portvec.filters.ast import FILTER_NODE_TYPES, FilterExpression
from portvec.filters.parser import parse
from portvec.filters.schema import MetadataSchema
from portvec.filters.validator import validate
from portvec.schemas import Document, SearchRequest, SearchResult
from portvec.translators.base import FilterTranslator, NativeFilter
from portvec.translators.factory import get_translator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VectorStore:
    """Uniform add/search over any ``BackendClient``.

    The filter pipeline (parse, validate, translate) is stateless; the only
    shared state is the schema reference, which ``update_schema`` swaps
    atomically. Each call reads the schema once, so in-flight searches keep
    the snapshot they started with.
    """

    def __init__(
        self,
        backend: BackendClient,
        embedding_provider: EmbeddingProvider,
        schema: MetadataSchema | None = None,
        translator: FilterTranslator | None = None,
        search_settings: SearchSettings | None = None,
    ):
        self.backend = backend
        self.embedding_provider = embedding_provider
        self.translator = translator or get_translator(backend.filter_dialect)
        self._schema = schema if schema is not None else MetadataSchema()
        self._schema_lock = threading.Lock()
        self.search_settings = search_settings or SearchSettings()
        self.provisioning = self.provision()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> VectorStore:
        """Build provider, backend and schema from configuration."""
        settings = settings or load_settings()
        emb = settings.embedding
        provider = get_embedding_provider(
            emb.provider, **provider_kwargs(emb.provider, emb.model, emb.dimension)
        )
        backend = get_backend(
            settings.vectorstore.backend,
            **_backend_kwargs(settings.vectorstore, provider.dimension),
        )
        return cls(
            backend=backend,
            embedding_provider=provider,
            schema=settings.build_schema(),
            search_settings=settings.search,
        )

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    @property
    def schema(self) -> MetadataSchema:
        return self._schema

    def update_schema(self, schema: MetadataSchema) -> None:
        """Replace the filterable field declarations.

        The backend is provisioned for the new schema first, so payload
        indexes and mappings for added fields exist before filters on them
        are accepted. Existing documents are not rewritten; re-indexing
        values stored under an incompatible mapping is an external
        migration step.
        """
        result = self.provision(schema)
        with self._schema_lock:
            self._schema = schema
            self.provisioning = result
        logger.info("Schema updated: %s", schema.names)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def provision(self, schema: MetadataSchema | None = None) -> ProvisionResult:
        """Run the backend's idempotent provisioning step.

        Args:
            schema: Schema to provision for; defaults to the current one.
        """
        schema = schema if schema is not None else self._schema
        result = self._call_backend("provision", self.backend.provision, schema)
        logger.info(
            "Provisioned %s collection '%s' (created=%s)",
            result.backend,
            result.collection,
            result.created,
        )
        return result

    def add(self, documents: Iterable[Document]) -> list[str]:
        """Embed (where needed) and write documents to the backend.

        All embeddings are computed before anything is written, and the
        records go to the backend in a single upsert. Metadata keys outside
        the schema are stored as given.

        Args:
            documents: Documents to store. Missing IDs are generated.

        Returns:
            The document IDs, in input order.

        Raises:
            EmbeddingError: The provider failed; nothing was written.
            BackendIOError: The backend write failed.
        """
        documents = list(documents)
        if not documents:
            return []

        pending = [d.content for d in documents if d.embedding is None]
        computed = iter(self._embed_documents(pending) if pending else [])

        records = []
        for doc in documents:
            embedding = doc.embedding if doc.embedding is not None else next(computed)
            records.append(VectorRecord(
                id=doc.id or str(uuid.uuid4()),
                content=doc.content,
                embedding=list(embedding),
                metadata=dict(doc.metadata),
            ))

        self._call_backend("upsert", self.backend.upsert, records)
        logger.info(
            "Added %d documents (%d embedded) to %s",
            len(records),
            len(pending),
            self.backend.backend_name(),
        )
        return [r.id for r in records]

    def similarity_search(
        self,
        request: SearchRequest,
        timeout: float | None = None,
    ) -> list[SearchResult]:
        """Run a filtered similarity search.

        The filter is compiled before any I/O, so parse, validation and
        translation errors abort the call without touching the backend.

        Args:
            request: Query text, ``top_k``, optional threshold and filter.
            timeout: Seconds, passed through to the backend client.

        Returns:
            At most ``top_k`` results, sorted by descending score, none below
            the similarity threshold.
        """
        native_filter = None
        if request.filter is not None:
            native_filter = self.compile_filter(request.filter)

        query_embedding = self._embed_query(request.query)
        hits = self._call_backend(
            "query",
            self.backend.query,
            query_embedding,
            request.top_k,
            native_filter=native_filter,
            similarity_threshold=request.similarity_threshold,
            timeout=timeout,
        )

        results = [_to_result(hit) for hit in hits]
        if request.similarity_threshold is not None:
            results = [r for r in results if r.score >= request.similarity_threshold]
        results.sort(key=lambda r: r.score, reverse=True)
        results = results[: request.top_k]

        logger.info(
            "Search returned %d results (backend hits=%d, filtered=%s)",
            len(results),
            len(hits),
            native_filter is not None,
        )
        return results

    def search(
        self,
        query: str,
        top_k: int | None = None,
        similarity_threshold: float | None = None,
        filter_expression: str | FilterExpression | None = None,
        timeout: float | None = None,
    ) -> list[SearchResult]:
        """Convenience wrapper around ``similarity_search``.

        ``top_k`` and ``similarity_threshold`` default to ``search_settings``.
        """
        defaults = self.search_settings
        request = SearchRequest(
            query=query,
            top_k=top_k if top_k is not None else defaults.top_k,
            similarity_threshold=(
                similarity_threshold
                if similarity_threshold is not None
                else defaults.similarity_threshold
            ),
            filter=filter_expression,
        )
        return self.similarity_search(request, timeout=timeout)

    def compile_filter(self, filter_expression: str | FilterExpression) -> NativeFilter:
        """Parse (if text), validate and translate a filter for this backend.

        Blank filter text means "no filter" and compiles to ``None``.
        """
        schema = self._schema
        if isinstance(filter_expression, str):
            if not filter_expression.strip():
                return None
            expression = parse(filter_expression)
        elif isinstance(filter_expression, FILTER_NODE_TYPES):
            expression = filter_expression
        else:
            raise TypeError(
                f"Filter must be text or a FilterExpression, got {type(filter_expression).__name__}"
            )

        native = self.translator.translate(validate(expression, schema))
        logger.debug("Compiled filter for %s: %r", self.translator.name, native)
        return native

    def delete(self, ids: list[str]) -> int:
        return self._call_backend("delete", self.backend.delete, ids)

    def count(self) -> int:
        return self._call_backend("count", self.backend.count)

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _embed_documents(self, texts: list[str]) -> list[list[float]]:
        try:
            embeddings = self.embedding_provider.embed_texts(texts)
        except PortVecError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider failed: {exc}") from exc
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Embedding provider returned {len(embeddings)} vectors for {len(texts)} texts"
            )
        return embeddings

    def _embed_query(self, query: str) -> list[float]:
        try:
            return self.embedding_provider.embed_query(query)
        except PortVecError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider failed: {exc}") from exc

    def _call_backend(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except PortVecError:
            raise
        except Exception as exc:
            raise BackendIOError(
                f"{self.backend.backend_name()} {operation} failed: {exc}"
            ) from exc


def _to_result(hit: RawHit) -> SearchResult:
    return SearchResult(
        document=Document(
            content=hit.content,
            metadata=dict(hit.metadata),
            id=hit.id,
            embedding=hit.embedding,
        ),
        score=hit.score,
    )


def _backend_kwargs(cfg: VectorStoreSettings, dimension: int) -> dict[str, Any]:
    backend = cfg.backend.lower()
    if backend == "qdrant":
        return {
            "collection_name": cfg.collection,
            "dimension": dimension,
            "url": cfg.url,
            "api_key": cfg.api_key,
            "path": cfg.path,
        }
    if backend == "opensearch":
        return {
            "index_name": cfg.collection,
            "dimension": dimension,
            "collection_endpoint": cfg.url,
        }
    return {"dimension": dimension, "collection": cfg.collection}
