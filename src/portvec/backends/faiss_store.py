"""FAISS backend: local, zero infrastructure.

Uses a flat inner-product index over L2-normalised vectors (cosine
similarity) with a parallel record table. Filters are in-process
predicates produced by the ``memory`` translator.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import numpy as np

from portvec.backends.base import BackendClient
from portvec.backends.schemas import ProvisionResult, RawHit, VectorRecord
from portvec.filters.schema import MetadataSchema

logger = logging.getLogger(__name__)


class FAISSStore(BackendClient):
    """FAISS-backed store with predicate filtering."""

    filter_dialect = "memory"

    def __init__(self, dimension: int = 768, collection: str = "default"):
        try:
            import faiss
        except ImportError as exc:
            raise ImportError("faiss-cpu required: pip install portvec[faiss]") from exc

        self._faiss = faiss
        self._dimension = dimension
        self._collection = collection
        self._provisioned = False
        self._index = faiss.IndexFlatIP(dimension)  # Inner product (cosine after normalization)
        self._ids: list[str] = []  # index position -> record id
        self._records: dict[str, dict[str, Any]] = {}  # id -> {content, metadata, vector}
        # Guards _index, _ids and _records together
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def provision(self, schema: MetadataSchema) -> ProvisionResult:
        created = not self._provisioned
        self._provisioned = True
        return ProvisionResult(
            backend=self.backend_name(),
            collection=self._collection,
            created=created,
            detail=[f"in-process flat index (dim={self._dimension})"],
        )

    def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        vectors = self._normalize([r.embedding for r in records])
        batch_ids = [r.id for r in records]

        with self._lock:
            replaced = len(set(batch_ids)) != len(batch_ids) or any(
                i in self._records for i in batch_ids
            )
            for record, vector in zip(records, vectors, strict=True):
                self._records[record.id] = {
                    "content": record.content,
                    "metadata": dict(record.metadata),
                    "vector": vector,
                }

            if replaced:
                self._rebuild()
            else:
                self._index.add(vectors)
                self._ids.extend(batch_ids)
            total = self._index.ntotal

        logger.info("FAISSStore upserted %d records (total: %d)", len(records), total)
        return len(records)

    def query(
        self,
        vector: list[float],
        top_k: int,
        native_filter: Callable[[Mapping[str, Any]], bool] | None = None,
        similarity_threshold: float | None = None,
        timeout: float | None = None,
    ) -> list[RawHit]:
        query_vec = self._normalize([vector])

        with self._lock:
            if self._index.ntotal == 0:
                return []

            # A flat index is exact, so scan everything when a predicate may reject hits
            fetch_k = self._index.ntotal if native_filter else min(top_k, self._index.ntotal)
            scores, positions = self._index.search(query_vec, fetch_k)

            hits: list[RawHit] = []
            for score, position in zip(scores[0], positions[0], strict=True):
                if position == -1:
                    continue
                if similarity_threshold is not None and score < similarity_threshold:
                    break
                record_id = self._ids[int(position)]
                record = self._records[record_id]
                if native_filter is not None and not native_filter(record["metadata"]):
                    continue

                hits.append(RawHit(
                    id=record_id,
                    content=record["content"],
                    score=float(score),
                    metadata=dict(record["metadata"]),
                    embedding=record["vector"].tolist(),
                ))
                if len(hits) >= top_k:
                    break

        return hits

    def count(self) -> int:
        with self._lock:
            return self._index.ntotal

    def delete(self, ids: list[str]) -> int:
        with self._lock:
            deleted = 0
            for record_id in ids:
                if self._records.pop(record_id, None) is not None:
                    deleted += 1
            if deleted:
                logger.warning(
                    "FAISSStore delete rebuilds the flat index (%d records remain)",
                    len(self._records),
                )
                self._rebuild()
        return deleted

    def clear(self) -> None:
        with self._lock:
            self._index = self._faiss.IndexFlatIP(self._dimension)
            self._ids = []
            self._records = {}

    def save(self, path: str) -> None:
        """Save the FAISS index and record table to disk."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        with self._lock:
            self._faiss.write_index(self._index, str(p / "index.faiss"))
            serializable = {
                record_id: {
                    "content": record["content"],
                    "metadata": record["metadata"],
                    "vector": record["vector"].tolist(),
                }
                for record_id, record in self._records.items()
            }
            ids = list(self._ids)

        with open(p / "records.json", "w", encoding="utf-8") as f:
            json.dump({"ids": ids, "records": serializable}, f)

        logger.info("FAISSStore saved to %s (%d records)", path, len(ids))

    def load(self, path: str) -> None:
        """Load a FAISS index and record table saved by ``save``."""
        p = Path(path)

        index = self._faiss.read_index(str(p / "index.faiss"))
        with open(p / "records.json", encoding="utf-8") as f:
            data = json.load(f)

        records = {
            record_id: {
                "content": record["content"],
                "metadata": record["metadata"],
                "vector": np.array(record["vector"], dtype=np.float32),
            }
            for record_id, record in data["records"].items()
        }
        with self._lock:
            self._index = index
            self._ids = list(data["ids"])
            self._records = records
        logger.info("FAISSStore loaded from %s (%d records)", path, len(records))

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _normalize(self, vectors: list[list[float]]) -> np.ndarray:
        array = np.array(vectors, dtype=np.float32)
        if array.ndim != 2 or array.shape[1] != self._dimension:
            raise ValueError(
                f"Expected vectors of dimension {self._dimension}, got shape {array.shape}"
            )
        self._faiss.normalize_L2(array)
        return array

    def _rebuild(self) -> None:
        # Caller holds the lock; the new index is swapped in together with _ids
        ids = list(self._records)
        index = self._faiss.IndexFlatIP(self._dimension)
        if ids:
            index.add(np.stack([self._records[i]["vector"] for i in ids]))
        self._index, self._ids = index, ids
