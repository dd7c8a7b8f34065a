import asyncio
from abc import abstractmethod

import httpx
from shared.clients.ClientInterface import ClientInterface
from shared.clients.embed.retry import RetryPolicy, RetryState
from shared.exceptions import EmbeddingFailedError, ModelNotFoundError, ProviderUnavailableError, VectDbError
from shared.helper.HelperConfig import HelperConfig
from shared.models.results import ModelInfo


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # retry behaviour, applied per individual text
        prefix = self.get_client_type().upper()
        self.retry_policy = RetryPolicy(
            max_retries=int(helper_config.get_number_val(f"{prefix}_MAX_RETRIES", default=3)),
            initial_backoff_ms=int(helper_config.get_number_val(f"{prefix}_INITIAL_BACKOFF_MS", default=100)),
        )

    ##########################################
    ############### CHECKER ##################
    ##########################################

    @staticmethod
    def match_model_name(model_name: str, available: list[str]) -> bool:
        """Check whether `model_name` is among the provider's model names.

        Providers always report tagged names ("nomic-embed-text:latest") while users
        may ask with or without a tag, so three matches are tried in order:
        exact name, "<name>:latest" for untagged names, then the base name.
        An untagged request matches any tag of that base ("foo" -> "foo:v2"),
        a tagged request only the bare base ("foo:v1" -> "foo", never "foo:v2").

        Args:
            model_name (str): The requested model, e.g. "foo" or "foo:v1".
            available (list[str]): Model names reported by the provider.

        Returns:
            bool: True if any tier matches.
        """
        if model_name in available:
            return True
        if ":" not in model_name and f"{model_name}:latest" in available:
            return True
        base_name = model_name.split(":", 1)[0]
        if ":" in model_name:
            return base_name in available
        return any(name.split(":", 1)[0] == base_name for name in available)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_models(self) -> str:
        """
        Returns the endpoint path for model listing requests (e.g. "/api/tags").
        Also used as the liveness check.
        """
        pass

    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for single-text embedding requests (e.g. "/api/embeddings").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, model: str, text: str) -> dict:
        """Build the backend-specific request body for embedding one text.

        Args:
            model (str): The embedding model name.
            text (str): The text to embed.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embedding_from_response(self, response_data: dict) -> list[float]:
        """Extract the embedding vector from a raw embedding API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ValueError: If the response does not contain a valid embedding.
        """
        pass

    @abstractmethod
    def extract_models_from_response(self, response_data: dict) -> list[ModelInfo]:
        """Extract the model list from a raw model listing response.

        Raises:
            ValueError: If the response format is invalid.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> bool:
        """Check provider liveness. Never raises: liveness is advisory.

        Returns:
            bool: True on any successful response, False on transport failure or error status.
        """
        self.logging.debug("Performing health check on %s", self.get_engine_name())
        try:
            response = await self.do_request(method="GET", endpoint=self._get_endpoint_models())
        except httpx.HTTPError as exc:
            self.logging.warning("%s health check failed: %s", self.get_engine_name(), exc)
            return False
        if not response.is_success:
            self.logging.warning(
                "%s health check failed with status: %d", self.get_engine_name(), response.status_code
            )
            return False
        self.logging.info("%s health check passed", self.get_engine_name())
        return True

    async def do_fetch_models(self) -> list[ModelInfo]:
        """Fetch the list of available embedding models from the backend.

        Returns:
            list[ModelInfo]: The available models.

        Raises:
            ProviderUnavailableError: If the backend cannot be reached, answers with an
                error status, or returns an unparsable body.
        """
        self.logging.debug("Listing available models from %s", self.get_engine_name())
        try:
            response = await self.do_request(method="GET", endpoint=self._get_endpoint_models())
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(f"Failed to connect to {self.get_engine_name()}: {exc}") from exc
        if not response.is_success:
            raise ProviderUnavailableError(
                f"{self.get_engine_name()} API returned error: {response.status_code}"
            )
        try:
            models = self.extract_models_from_response(response.json())
        except ValueError as exc:
            raise ProviderUnavailableError(f"Failed to parse response: {exc}") from exc
        self.logging.info("Found %d models", len(models))
        return models

    async def has_model(self, model_name: str) -> bool:
        """Check if a specific model is available, with or without an explicit tag.

        Raises:
            ProviderUnavailableError: If the model list cannot be fetched.
        """
        models = await self.do_fetch_models()
        return self.match_model_name(model_name, [m.name for m in models])

    async def embed(self, model: str, text: str) -> list[float]:
        """Generate an embedding for a single text.

        Raises:
            ProviderUnavailableError: If the provider stays unreachable.
            EmbeddingFailedError: If the provider rejects the request or answers garbage.
        """
        vectors = await self.embed_batch(model, [text])
        return vectors[0]

    async def embed_batch(self, model: str, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for several texts, one request per text.

        The provider accepts a single text per call, so texts are embedded
        sequentially in input order. A failure on one text aborts the batch;
        later texts are not attempted.

        Args:
            model (str): The embedding model name.
            texts (list[str]): Texts to embed. An empty list makes no request.

        Returns:
            list[list[float]]: One vector per text, in input order.

        Raises:
            ProviderUnavailableError: If the provider stays unreachable for one text.
            EmbeddingFailedError: If one text cannot be embedded.
        """
        if not texts:
            return []

        self.logging.debug("Generating embeddings for %d texts using model %s", len(texts), model)
        embeddings: list[list[float]] = []
        for idx, text in enumerate(texts):
            embeddings.append(await self._embed_with_retry(model, text))
            if (idx + 1) % 10 == 0:
                self.logging.debug("Generated %d/%d embeddings", idx + 1, len(texts))

        self.logging.info("Successfully generated %d embeddings", len(embeddings))
        return embeddings

    ##########################################
    ################ RETRY ###################
    ##########################################

    async def _embed_with_retry(self, model: str, text: str) -> list[float]:
        """Embed one text, retrying transient failures with exponential backoff."""
        policy = self.retry_policy
        body = self.get_embed_payload(model, text)
        attempt = 0
        while True:
            state, vector, error = await self._attempt_embedding(model, body)
            if state is RetryState.SUCCESS:
                return vector
            if state is RetryState.NON_RETRYABLE_FAILURE:
                raise error

            state = policy.next_state(attempt)
            if state is RetryState.EXHAUSTED:
                self.logging.error(
                    "Embedding request failed after %d attempts: %s", policy.max_attempts, error
                )
                raise error

            delay = policy.delay_seconds(attempt)
            self.logging.warning(
                "Embedding request failed (attempt %d/%d), retrying in %.0f ms: %s",
                attempt + 1,
                policy.max_attempts,
                delay * 1000,
                error,
            )
            await asyncio.sleep(delay)
            attempt += 1

    async def _attempt_embedding(
        self, model: str, body: dict
    ) -> tuple[RetryState, list[float] | None, VectDbError | None]:
        """Run a single embedding attempt and classify its outcome.

        Returns:
            tuple: (SUCCESS, vector, None), (NON_RETRYABLE_FAILURE, None, error), or
                (ATTEMPTING, None, error) for failures worth retrying; the error is the one
                raised if retries run out.
        """
        engine = self.get_engine_name()
        retries = self.retry_policy.max_retries
        try:
            response = await self.do_request(method="POST", endpoint=self.get_endpoint_embedding(), json=body)
        except httpx.TransportError as exc:
            return RetryState.ATTEMPTING, None, ProviderUnavailableError(
                f"Failed to connect to {engine} after {retries} retries: {exc}"
            )

        if response.is_success:
            try:
                return RetryState.SUCCESS, self.extract_embedding_from_response(response.json()), None
            except ValueError as exc:
                return RetryState.NON_RETRYABLE_FAILURE, None, EmbeddingFailedError(
                    f"Failed to parse response: {exc}", status_code=response.status_code
                )

        if response.status_code == 404:
            return RetryState.NON_RETRYABLE_FAILURE, None, ModelNotFoundError(model, response.text)

        return RetryState.ATTEMPTING, None, EmbeddingFailedError(
            f"{engine} API returned error {response.status_code} after {retries} retries: {response.text}",
            status_code=response.status_code,
            body=response.text,
        )
