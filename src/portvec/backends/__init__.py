"""Backend clients: FAISS (local), Qdrant and OpenSearch."""

from portvec.backends.base import BackendClient
from portvec.backends.factory import available_backends, get_backend
from portvec.backends.schemas import ProvisionResult, RawHit, VectorRecord

__all__ = [
    "BackendClient",
    "ProvisionResult",
    "RawHit",
    "VectorRecord",
    "available_backends",
    "get_backend",
]
