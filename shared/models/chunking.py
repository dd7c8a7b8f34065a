"""Pydantic models describing how a document's text is split into chunks."""

from typing import Literal

from pydantic import BaseModel, Field


class FixedSizeStrategy(BaseModel):
    """Fixed-size windows of `size` characters, consecutive windows sharing `overlap` characters."""

    kind: Literal["fixed"] = "fixed"
    size: int = Field(default=512, ge=0)
    overlap: int = Field(default=50, ge=0)


class SemanticStrategy(BaseModel):
    """Paragraph- and sentence-aligned chunks of at most `max_size` characters."""

    kind: Literal["semantic"] = "semantic"
    max_size: int = Field(default=512, ge=0)


ChunkStrategy = FixedSizeStrategy | SemanticStrategy
