from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional
import yaml
from pydantic import BaseModel, Field

# ---- Metadata fields cleared on every output document ----
MetadataField = Literal["title", "author", "subject", "keywords", "producer", "creator"]

DEFAULT_SANITIZED_FIELDS: List[MetadataField] = [
    "title", "author", "subject", "keywords", "producer", "creator",
]


# ---- Rasterization (how redacted pages are rebuilt) ----
class RasterConfig(BaseModel):
    oversample: float = Field(2.0, gt=0)  # linear resolution factor over PDF points
    mask_color: str = "#000000"
    background_color: str = "#ffffff"
    image_format: Literal["png"] = "png"
    # Scale (relative to PDF points) of the context that areas without capture
    # dimensions were drawn on. None treats them as already in raster pixels.
    legacy_capture_scale: Optional[float] = Field(None, gt=0)


# ---- Interactive marking ----
class RegistryConfig(BaseModel):
    min_area_px: float = 5.0         # drags smaller than this are treated as clicks
    delete_control_px: float = 16.0  # side of the delete square at an area's top-right corner


class PreviewConfig(BaseModel):
    scale: float = Field(1.3, gt=0)
    thumbnail_scale: float = Field(0.22, gt=0)


class SanitizeConfig(BaseModel):
    fields: List[MetadataField] = Field(default_factory=lambda: list(DEFAULT_SANITIZED_FIELDS))


# ---- Root config ----
class BlacklineConfig(BaseModel):
    raster: RasterConfig = Field(default_factory=RasterConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    preview: PreviewConfig = Field(default_factory=PreviewConfig)
    sanitize: SanitizeConfig = Field(default_factory=SanitizeConfig)


# ---- Loader ----
def load_config(path: Optional[Path]) -> BlacklineConfig:
    if not path:
        return BlacklineConfig()
    data = yaml.safe_load(Path(path).read_text()) or {}
    return BlacklineConfig(**data)
