from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional
import yaml
from pydantic import BaseModel, Field

# ---- Ingestion (what we accept and how we read it) ----
class IngestConfig(BaseModel):
    text_suffixes: List[str] = Field(default_factory=lambda: [".txt", ".md", ".json"])
    encoding: str = "utf-8"
    max_upload_bytes: int = 20 * 1024 * 1024  # web uploads only


# ---- Export encoding ----
class ExportConfig(BaseModel):
    image_format: Literal["PNG", "JPEG", "WEBP"] = "PNG"  # PNG keeps the blur lossless


# ---- Text preview ----
class PreviewConfig(BaseModel):
    wrap_width: Optional[int] = None  # hard-wrap plain previews; None keeps lines intact


# ---- Root config ----
class BlurifyConfig(BaseModel):
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    preview: PreviewConfig = Field(default_factory=PreviewConfig)

# ---- Loader ----
def load_config(path: Optional[Path]) -> BlurifyConfig:
    if not path:
        return BlurifyConfig()
    data = yaml.safe_load(Path(path).read_text()) or {}
    return BlurifyConfig(**data)
