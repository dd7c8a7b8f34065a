from pydantic import BaseModel

from shared.models.document import SearchResult


class HealthResponse(BaseModel):
    status: str
    ollama_available: bool


class StatsResponse(BaseModel):
    document_count: int
    chunk_count: int
    embedding_count: int
    db_size_bytes: int


class SearchResultResponse(BaseModel):
    source: str
    chunk_index: int
    content: str
    similarity: float

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchResultResponse":
        return cls(
            source=result.document.source,
            chunk_index=result.chunk.chunk_index,
            content=result.chunk.content,
            similarity=result.similarity,
        )


class ModelResponse(BaseModel):
    name: str
    size: int
    modified_at: str
