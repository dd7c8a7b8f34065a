from fastapi import APIRouter, Request

from server.models.responses import HealthResponse, ModelResponse, StatsResponse
from shared.store.VectorStore import VectorStore

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health")
async def health(request: Request) -> HealthResponse:
    """Report server liveness and whether the embedding provider answers."""
    ollama_available = await request.app.state.embed_client.do_healthcheck()
    return HealthResponse(status="ok", ollama_available=ollama_available)


@router.get("/stats")
async def stats(request: Request) -> StatsResponse:
    """Return document, chunk and embedding counts plus the database size."""
    state = request.app.state
    with VectorStore(state.helper_config, state.settings.database.path) as store:
        snapshot = store.get_stats()
    return StatsResponse(**snapshot.model_dump())


@router.get("/models")
async def models(request: Request) -> list[ModelResponse]:
    """List the models the embedding provider has available."""
    available = await request.app.state.embed_client.do_fetch_models()
    return [ModelResponse(name=m.name, size=m.size, modified_at=m.modified_at) for m in available]
