from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import SearchResult
from shared.store.VectorStore import VectorStore


class SearchService:
    """Handles semantic search queries: embed -> scan -> filter."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store: VectorStore,
        embed_client: EmbedClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store
        self._embed_client = embed_client

    ##########################################
    ############### CORE #####################
    ##########################################

    async def search(self, query: str, model: str, top_k: int, threshold: float = 0.0) -> list[SearchResult]:
        """Embed a query and return the most similar stored chunks.

        Args:
            query (str): Natural language query text.
            model (str): Embedding model; only chunks embedded with it are compared.
            top_k (int): Maximum number of results before threshold filtering.
            threshold (float): Minimum similarity. Applied only when greater than 0.0.

        Returns:
            list[SearchResult]: Results, most similar first.
        """
        self.logging.info("SearchService.search: query='%s', model=%s, top_k=%d", query[:80], model, top_k)

        query_vector = await self._embed_client.embed(model, query)
        self.logging.debug("Query vector dimension: %d", len(query_vector))

        return self.search_by_vector(query_vector, model, top_k, threshold)

    def search_by_vector(
        self, query_vector: list[float], model: str, top_k: int, threshold: float = 0.0
    ) -> list[SearchResult]:
        """Scan and filter with an already embedded query.

        Lets callers finish the provider call before opening the store.
        """
        results = apply_threshold(self._store.search_similar(query_vector, model, top_k), threshold)

        self.logging.info("SearchService.search: returning %d result(s).", len(results))
        return results


def apply_threshold(results: list[SearchResult], threshold: float) -> list[SearchResult]:
    """Drop results below `threshold`; a threshold of 0.0 or less keeps everything."""
    if threshold > 0.0:
        return [r for r in results if r.similarity >= threshold]
    return results
