"""Settings loaded from YAML: embedding provider, backend, metadata schema."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from portvec.filters.schema import FieldType, MetadataField, MetadataSchema

# ---------------------------------------------------------------------------
# Settings sections
# ---------------------------------------------------------------------------


class EmbeddingSettings(BaseModel):
    provider: str = "ollama"
    model: str | None = None
    dimension: int = 768


class VectorStoreSettings(BaseModel):
    backend: str = "faiss"
    collection: str = "portvec"
    path: str | None = None
    url: str | None = None
    api_key: str | None = None


class SearchSettings(BaseModel):
    top_k: int = Field(default=4, gt=0)
    similarity_threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class MetadataFieldSettings(BaseModel):
    name: str
    type: FieldType


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vectorstore: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    metadata_fields: list[MetadataFieldSettings] = Field(default_factory=list)

    def build_schema(self) -> MetadataSchema:
        """Return the schema registry declared by ``metadata_fields``."""
        return MetadataSchema(MetadataField(f.name, f.type) for f in self.metadata_fields)


def _find_settings_file() -> Path | None:
    """Walk up from cwd looking for settings.yaml."""
    profile = os.getenv("PORTVEC_PROFILE", "")
    names = [f"settings-{profile}.yaml", "settings.yaml"] if profile else ["settings.yaml"]

    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        for name in names:
            candidate = parent / name
            if candidate.exists():
                return candidate
    return None


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file, falling back to defaults.

    Args:
        path: Explicit settings file. When omitted, the nearest
            ``settings.yaml`` (or ``settings-$PORTVEC_PROFILE.yaml``) above
            the working directory is used.
    """
    settings_path = Path(path) if path is not None else _find_settings_file()
    if settings_path is None:
        return Settings()

    with open(settings_path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    return Settings(**raw)
