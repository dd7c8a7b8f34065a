from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.results import ModelInfo


class EmbedClientOllama(EmbedClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="http://localhost:11434", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="http://localhost:11434"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_models(self) -> str:
        # ollama uses /api/tags for model listing
        return "/api/tags"

    def get_endpoint_embedding(self) -> str:
        # /api/embeddings takes exactly one prompt per request
        return "/api/embeddings"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, model: str, text: str) -> dict:
        """Build the Ollama embedding request body.

        Returns:
            dict: {"model": "...", "prompt": "..."}
        """
        return {"model": model, "prompt": text}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_embedding_from_response(self, response_data: dict) -> list[float]:
        """Extract the embedding vector from an Ollama /api/embeddings response.

        Args:
            response_data (dict): The parsed JSON response body, {"embedding": [...]}.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ValueError: If the response does not contain a non-empty numeric vector.
        """
        if not isinstance(response_data, dict):
            raise ValueError(f"Unexpected Ollama embedding response type: {type(response_data).__name__}")
        embedding = response_data.get("embedding")
        if not isinstance(embedding, list) or not embedding:
            raise ValueError(
                "Ollama response does not contain a valid embedding. "
                f"Response keys: {list(response_data.keys())}"
            )
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in embedding):
            raise ValueError("Ollama embedding contains non-numeric components.")
        return [float(v) for v in embedding]

    def extract_models_from_response(self, response_data: dict) -> list[ModelInfo]:
        """Extract the model list from an Ollama /api/tags response.

        Args:
            response_data (dict): {"models": [{"name": ..., "size": ..., "modified_at": ...}]}

        Returns:
            list[ModelInfo]: The available models.

        Raises:
            ValueError: If the response has no model list or an entry has no name.
        """
        if not isinstance(response_data, dict) or not isinstance(response_data.get("models"), list):
            raise ValueError("Ollama /api/tags response does not contain a model list.")
        models: list[ModelInfo] = []
        for entry in response_data["models"]:
            if not isinstance(entry, dict) or not entry.get("name"):
                raise ValueError(f"Invalid model entry in Ollama response: {entry!r}")
            models.append(
                ModelInfo(
                    name=entry["name"],
                    size=int(entry.get("size") or 0),
                    modified_at=str(entry.get("modified_at") or ""),
                )
            )
        return models
