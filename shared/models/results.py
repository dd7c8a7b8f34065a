"""Pydantic models for pipeline outcomes, store statistics and provider model listings."""

from pydantic import BaseModel


class IngestionResult(BaseModel):
    """Outcome of ingesting a single file.

    Attributes:
        file_path (str): The file that was processed.
        document_id (int): Id of the created document, the existing duplicate, or 0.
        chunks_created (int): Number of chunk rows written.
        embeddings_created (int): Number of embedding rows written.
        skipped (bool): True for empty, duplicate or failed files.
        error (str | None): Failure message when the file was skipped due to an error.
    """

    file_path: str
    document_id: int = 0
    chunks_created: int = 0
    embeddings_created: int = 0
    skipped: bool = False
    error: str | None = None


class DatabaseStats(BaseModel):
    """Statistics snapshot of the vector store."""

    document_count: int
    chunk_count: int
    embedding_count: int
    db_size_bytes: int


class ModelInfo(BaseModel):
    """An embedding model available on the provider."""

    name: str
    size: int = 0
    modified_at: str = ""
