from fastapi import APIRouter, HTTPException, Request

from server.models.responses import SearchResultResponse
from services.search.SearchService import SearchService
from shared.store.VectorStore import VectorStore

router = APIRouter(prefix="/api", tags=["search"])


@router.get("/search")
async def search_documents(
    request: Request,
    query: str = "",
    top_k: int = 10,
    threshold: float = 0.0,
) -> list[SearchResultResponse]:
    """Run a semantic search against the stored chunks using the default model.

    The query is embedded first; the database is opened only afterwards so no
    connection is held while waiting on the provider.

    Args:
        request (Request): FastAPI request (provides app.state.embed_client and settings).
        query (str): The search text. Must not be empty.
        top_k (int): Maximum number of results.
        threshold (float): Minimum similarity; 0.0 disables filtering.

    Returns:
        list[SearchResultResponse]: Matching chunks, most similar first.
    """
    if not query:
        raise HTTPException(status_code=400, detail="Query parameter is required")

    state = request.app.state
    model = state.settings.default_model
    query_vector = await state.embed_client.embed(model, query)

    with VectorStore(state.helper_config, state.settings.database.path) as store:
        service = SearchService(helper_config=state.helper_config, store=store, embed_client=state.embed_client)
        results = service.search_by_vector(query_vector, model, top_k, threshold)

    return [SearchResultResponse.from_result(r) for r in results]
