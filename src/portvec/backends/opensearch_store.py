"""OpenSearch backend: k-NN search with query DSL filtering.

Requires the ``opensearch`` extra. Talks to a local OpenSearch node by
default, or to OpenSearch Serverless with AWS SigV4 authentication when a
collection endpoint is given.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from portvec.backends.base import BackendClient
from portvec.backends.schemas import ProvisionResult, RawHit, VectorRecord
from portvec.errors import BackendIOError
from portvec.filters.schema import FieldType, MetadataSchema

logger = logging.getLogger(__name__)

_FIELD_MAPPINGS = {
    FieldType.TEXT: {"type": "keyword"},
    FieldType.NUMBER: {"type": "double"},
    FieldType.BOOLEAN: {"type": "boolean"},
}

_METADATA_STRINGS_AS_KEYWORDS = {
    "metadata_strings": {
        "path_match": "metadata.*",
        "match_mapping_type": "string",
        "mapping": {"type": "keyword"},
    }
}


class OpenSearchStore(BackendClient):
    """OpenSearch vector store with k-NN search."""

    filter_dialect = "opensearch"

    def __init__(
        self,
        collection_endpoint: str | None = None,
        index_name: str = "portvec",
        dimension: int = 768,
        region: str = "us-east-1",
        client: Any = None,
    ):
        self._index_name = index_name
        self._dimension = dimension

        if client is not None:
            self._client = client
            return

        try:
            from opensearchpy import OpenSearch, RequestsHttpConnection
        except ImportError as exc:
            raise ImportError(
                "opensearch-py required: pip install portvec[opensearch]"
            ) from exc

        if collection_endpoint:
            try:
                import boto3
                from requests_aws4auth import AWS4Auth
            except ImportError as exc:
                raise ImportError(
                    "boto3 and requests-aws4auth required for OpenSearch Serverless: "
                    "pip install portvec[opensearch]"
                ) from exc

            credentials = boto3.Session().get_credentials()
            auth = AWS4Auth(
                credentials.access_key,
                credentials.secret_key,
                region,
                "aoss",
                session_token=credentials.token,
            )
            self._client = OpenSearch(
                hosts=[{"host": collection_endpoint.replace("https://", ""), "port": 443}],
                http_auth=auth,
                use_ssl=True,
                verify_certs=True,
                connection_class=RequestsHttpConnection,
                timeout=60,
            )
        else:
            # Local OpenSearch for development
            self._client = OpenSearch(
                hosts=[{"host": "localhost", "port": 9200}],
                use_ssl=False,
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def provision(self, schema: MetadataSchema) -> ProvisionResult:
        """Create the k-NN index, mapping each schema field under ``metadata``.

        On an existing index, schema fields without a mapping are added with
        ``put_mapping``. Undeclared string metadata is mapped as ``keyword``
        through a dynamic template, so a field declared later filters by
        exact value.
        """
        if self._client.indices.exists(index=self._index_name):
            return self._extend_mapping(schema)

        metadata_properties = {
            name: dict(_FIELD_MAPPINGS[schema.type_of(name)]) for name in schema
        }
        body = {
            "settings": {
                "index": {
                    "knn": True,
                    "knn.algo_param.ef_search": 100,
                }
            },
            "mappings": {
                "dynamic_templates": [_METADATA_STRINGS_AS_KEYWORDS],
                "properties": {
                    "embedding": {
                        "type": "knn_vector",
                        "dimension": self._dimension,
                        "method": {
                            "name": "hnsw",
                            "space_type": "cosinesimil",
                            "engine": "nmslib",
                        },
                    },
                    "content": {"type": "text"},
                    "doc_id": {"type": "keyword"},
                    "metadata": {"type": "object", "properties": metadata_properties},
                },
            },
        }
        self._client.indices.create(index=self._index_name, body=body)
        logger.info(
            "Created OpenSearch index '%s' (dim=%d)", self._index_name, self._dimension
        )
        return ProvisionResult(
            backend=self.backend_name(),
            collection=self._index_name,
            created=True,
            detail=[f"metadata.{name}" for name in metadata_properties],
        )

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        actions = []
        for record in records:
            actions.append({"index": {"_index": self._index_name, "_id": record.id}})
            actions.append({
                "doc_id": record.id,
                "content": record.content,
                "embedding": record.embedding,
                "metadata": dict(record.metadata),
            })

        body = "\n".join(json.dumps(a) for a in actions) + "\n"
        response = self._client.bulk(body=body)
        if response.get("errors"):
            failed = [
                item for item in response.get("items", [])
                if "error" in next(iter(item.values()), {})
            ]
            raise BackendIOError(f"OpenSearch bulk upsert failed for {len(failed)} records")
        self._client.indices.refresh(index=self._index_name)

        logger.info("OpenSearchStore upserted %d records", len(records))
        return len(records)

    def query(
        self,
        vector: list[float],
        top_k: int,
        native_filter: dict[str, Any] | None = None,
        similarity_threshold: float | None = None,
        timeout: float | None = None,
    ) -> list[RawHit]:
        query_body: dict[str, Any] = {
            "size": top_k,
            "query": {
                "knn": {
                    "embedding": {
                        "vector": vector,
                        "k": top_k,
                    }
                }
            },
        }

        if native_filter:
            query_body["query"] = {
                "bool": {
                    "must": [query_body["query"]],
                    "filter": [native_filter],
                }
            }
        if similarity_threshold is not None:
            query_body["min_score"] = similarity_threshold

        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["request_timeout"] = timeout
        response = self._client.search(index=self._index_name, body=query_body, **kwargs)

        hits: list[RawHit] = []
        for hit in response["hits"]["hits"]:
            source = hit["_source"]
            hits.append(RawHit(
                id=source.get("doc_id", hit["_id"]),
                content=source.get("content", ""),
                score=hit["_score"] if hit["_score"] is not None else 0.0,
                metadata=dict(source.get("metadata") or {}),
            ))
        return hits

    def count(self) -> int:
        return self._client.count(index=self._index_name)["count"]

    def delete(self, ids: list[str]) -> int:
        if not ids:
            return 0

        actions = [{"delete": {"_index": self._index_name, "_id": doc_id}} for doc_id in ids]
        body = "\n".join(json.dumps(a) for a in actions) + "\n"
        response = self._client.bulk(body=body)
        self._client.indices.refresh(index=self._index_name)
        return sum(
            1 for item in response.get("items", [])
            if item.get("delete", {}).get("result") == "deleted"
        )

    def clear(self) -> None:
        """Delete all documents, keeping the index and its mappings."""
        self._client.delete_by_query(
            index=self._index_name,
            body={"query": {"match_all": {}}},
            refresh=True,
        )

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _extend_mapping(self, schema: MetadataSchema) -> ProvisionResult:
        response = self._client.indices.get_mapping(index=self._index_name)
        mappings = response.get(self._index_name, {}).get("mappings", {})
        mapped = mappings.get("properties", {}).get("metadata", {}).get("properties", {})
        for name in schema:
            if schema.type_of(name) is FieldType.TEXT and mapped.get(name, {}).get("type") == "text":
                logger.warning(
                    "metadata.%s in '%s' is mapped as analyzed text; exact-match filters "
                    "on it need a reindex",
                    name,
                    self._index_name,
                )

        missing = {
            name: dict(_FIELD_MAPPINGS[schema.type_of(name)])
            for name in schema
            if name not in mapped
        }
        if missing:
            self._client.indices.put_mapping(
                index=self._index_name,
                body={"properties": {"metadata": {"properties": missing}}},
            )
            logger.info(
                "Added %d metadata mappings to OpenSearch index '%s'",
                len(missing),
                self._index_name,
            )
        return ProvisionResult(
            backend=self.backend_name(),
            collection=self._index_name,
            created=False,
            detail=[f"metadata.{name}" for name in missing],
        )
