"""Pydantic models for persisted documents, chunks and embeddings.

Hierarchy:
  Document: one ingested source unit, deduplicated by content_hash.
  Chunk: one contiguous span of a document's text.
  Embedding: the vector of one chunk under one model.
  SearchResult: ephemeral (chunk, document, similarity) triple.
"""

import hashlib
import time

from pydantic import BaseModel, Field, model_validator

CHARS_PER_TOKEN = 4  # rough heuristic, not a tokenizer count


def compute_content_hash(content: str) -> str:
    """Return the SHA-256 hex digest of the UTF-8 encoded content.

    Args:
        content (str): The raw document text.

    Returns:
        str: 64-character lowercase hex fingerprint.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class Document(BaseModel):
    """A source document. Immutable once persisted except for metadata."""

    id: int | None = None
    source: str
    content_hash: str
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: int

    @classmethod
    def from_content(cls, source: str, content: str, metadata: dict[str, str] | None = None) -> "Document":
        """Build an unsaved document and fingerprint its content.

        Args:
            source (str): Path or URL the content was read from.
            content (str): The full document text.
            metadata (dict[str, str] | None): Optional free-form metadata.

        Returns:
            Document: A document without id, ready for VectorStore.insert_document().
        """
        return cls(
            source=source,
            content_hash=compute_content_hash(content),
            metadata=dict(metadata or {}),
            created_at=int(time.time()),
        )


class Chunk(BaseModel):
    """A chunk of text from a document. (document_id, chunk_index) is unique."""

    id: int | None = None
    document_id: int
    chunk_index: int
    content: str
    token_count: int | None = None

    @classmethod
    def from_text(cls, document_id: int, chunk_index: int, content: str) -> "Chunk":
        return cls(
            document_id=document_id,
            chunk_index=chunk_index,
            content=content,
            token_count=len(content) // CHARS_PER_TOKEN,
        )


class Embedding(BaseModel):
    """An embedding vector for a chunk. dimension always equals len(vector)."""

    chunk_id: int
    model: str
    vector: list[float]
    dimension: int

    @model_validator(mode="after")
    def _check_dimension(self) -> "Embedding":
        if self.dimension != len(self.vector):
            raise ValueError(
                f"Embedding dimension {self.dimension} does not match vector length {len(self.vector)}"
            )
        return self

    @classmethod
    def create(cls, chunk_id: int, model: str, vector: list[float]) -> "Embedding":
        return cls(chunk_id=chunk_id, model=model, vector=list(vector), dimension=len(vector))


class SearchResult(BaseModel):
    """A single ranked match returned by a similarity search."""

    chunk: Chunk
    document: Document
    similarity: float
