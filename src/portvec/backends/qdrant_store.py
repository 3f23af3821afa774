"""Qdrant backend: production-grade with native payload filtering.

Requires the ``qdrant`` extra. Supports Qdrant Cloud, self-hosted servers,
on-disk local mode and in-memory local mode (the default, for tests).
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import Any

from portvec.backends.base import BackendClient
from portvec.backends.schemas import ProvisionResult, RawHit, VectorRecord
from portvec.filters.schema import FieldType, MetadataSchema

logger = logging.getLogger(__name__)

# Qdrant point IDs must be UUIDs or integers; document IDs are mapped onto UUIDs
_POINT_NAMESPACE = uuid.UUID("6f1e5cbb-3f0e-4d4e-9d7a-2b1c2f0e7a10")


def point_id(document_id: str) -> str:
    return str(uuid.uuid5(_POINT_NAMESPACE, document_id))


class QdrantStore(BackendClient):
    """Qdrant-backed store. Metadata lives under the ``metadata`` payload key."""

    filter_dialect = "qdrant"

    def __init__(
        self,
        collection_name: str = "portvec",
        dimension: int = 768,
        url: str | None = None,
        api_key: str | None = None,
        path: str | None = None,
    ):
        try:
            from qdrant_client import QdrantClient, models
        except ImportError as exc:
            raise ImportError("qdrant-client required: pip install portvec[qdrant]") from exc

        self._models = models
        self._collection_name = collection_name
        self._dimension = dimension
        self._indexed: dict[str, Any] = {}  # payload field -> PayloadSchemaType

        if url:
            self._client = QdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = QdrantClient(path=path)
        else:
            # In-memory for testing
            self._client = QdrantClient(":memory:")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def provision(self, schema: MetadataSchema) -> ProvisionResult:
        collections = [c.name for c in self._client.get_collections().collections]
        created = self._collection_name not in collections
        if created:
            self._create_collection()
        else:
            info = self._client.get_collection(self._collection_name)
            for field_name, index_info in (info.payload_schema or {}).items():
                self._indexed[field_name] = index_info.data_type

        detail = []
        for name in schema:
            field_name = f"metadata.{name}"
            if field_name in self._indexed:
                continue
            field_schema = self._payload_schema(schema.type_of(name))
            self._client.create_payload_index(
                collection_name=self._collection_name,
                field_name=field_name,
                field_schema=field_schema,
            )
            self._indexed[field_name] = field_schema
            detail.append(f"payload index {field_name} ({field_schema.value})")

        if created:
            logger.info(
                "Created Qdrant collection '%s' (dim=%d, %d payload indexes)",
                self._collection_name,
                self._dimension,
                len(detail),
            )
        elif detail:
            logger.info(
                "Added %d payload indexes to Qdrant collection '%s'",
                len(detail),
                self._collection_name,
            )
        return ProvisionResult(
            backend=self.backend_name(),
            collection=self._collection_name,
            created=created,
            detail=detail,
        )

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        points = [
            self._models.PointStruct(
                id=point_id(record.id),
                vector=record.embedding,
                payload={
                    "doc_id": record.id,
                    "content": record.content,
                    "metadata": dict(record.metadata),
                },
            )
            for record in records
        ]
        self._client.upsert(collection_name=self._collection_name, points=points)

        logger.info("QdrantStore upserted %d records", len(records))
        return len(records)

    def query(
        self,
        vector: list[float],
        top_k: int,
        native_filter: dict[str, Any] | None = None,
        similarity_threshold: float | None = None,
        timeout: float | None = None,
    ) -> list[RawHit]:
        query_filter = self._to_filter(native_filter) if native_filter else None

        response = self._client.query_points(
            collection_name=self._collection_name,
            query=vector,
            limit=top_k,
            query_filter=query_filter,
            score_threshold=similarity_threshold,
            with_payload=True,
            # whole seconds, rounded up
            timeout=math.ceil(timeout) if timeout is not None else None,
        )

        hits: list[RawHit] = []
        for point in response.points:
            payload = point.payload or {}
            hits.append(RawHit(
                id=payload.get("doc_id", str(point.id)),
                content=payload.get("content", ""),
                score=point.score if point.score is not None else 0.0,
                metadata=dict(payload.get("metadata") or {}),
            ))
        return hits

    def count(self) -> int:
        return self._client.count(collection_name=self._collection_name, exact=True).count

    def delete(self, ids: list[str]) -> int:
        if not ids:
            return 0
        existing = self._client.retrieve(
            collection_name=self._collection_name,
            ids=list(dict.fromkeys(point_id(i) for i in ids)),
            with_payload=False,
            with_vectors=False,
        )
        if not existing:
            return 0
        self._client.delete(
            collection_name=self._collection_name,
            points_selector=self._models.PointIdsList(points=[p.id for p in existing]),
        )
        return len(existing)

    def clear(self) -> None:
        """Drop and recreate the collection, keeping its payload indexes."""
        self._client.delete_collection(self._collection_name)
        self._create_collection()
        for field_name, field_schema in self._indexed.items():
            self._client.create_payload_index(
                collection_name=self._collection_name,
                field_name=field_name,
                field_schema=field_schema,
            )

    # ------------------------------------------------------------------
    # Filter conversion: REST-shaped dict -> qdrant_client models
    # ------------------------------------------------------------------

    def _to_filter(self, clauses: dict[str, Any]) -> Any:
        return self._models.Filter(**{
            clause: [self._to_condition(c) for c in conditions]
            for clause, conditions in clauses.items()
        })

    def _to_condition(self, cond: dict[str, Any]) -> Any:
        if "key" not in cond:
            return self._to_filter(cond)
        models = self._models
        if "range" in cond:
            return models.FieldCondition(key=cond["key"], range=models.Range(**cond["range"]))
        match = cond["match"]
        if "any" in match:
            return models.FieldCondition(key=cond["key"], match=models.MatchAny(any=match["any"]))
        return models.FieldCondition(key=cond["key"], match=models.MatchValue(value=match["value"]))

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create_collection(self) -> None:
        self._client.create_collection(
            collection_name=self._collection_name,
            vectors_config=self._models.VectorParams(
                size=self._dimension,
                distance=self._models.Distance.COSINE,
            ),
        )

    def _payload_schema(self, field_type: FieldType) -> Any:
        schema_types = self._models.PayloadSchemaType
        return {
            FieldType.TEXT: schema_types.KEYWORD,
            FieldType.NUMBER: schema_types.FLOAT,
            FieldType.BOOLEAN: schema_types.BOOL,
        }[field_type]
