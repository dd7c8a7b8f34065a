import importlib

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig

# EMBED_ENGINE value -> (module path, class name)
KNOWN_ENGINES: dict[str, tuple[str, str]] = {
    "ollama": ("shared.clients.embed.ollama.EmbedClientOllama", "EmbedClientOllama"),
}


class EmbedClientManager:
    """Picks the embedding provider client named by EMBED_ENGINE (default "ollama").

    The client is created unbooted; callers use it as an async context
    manager or call boot()/close() themselves.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.engine = helper_config.get_string_val("EMBED_ENGINE", default="ollama").strip().lower()
        self._client: EmbedClientInterface | None = None

    def _load_client_class(self) -> type[EmbedClientInterface]:
        """
        Raises:
            ValueError: If EMBED_ENGINE names an engine without a client.
        """
        if self.engine not in KNOWN_ENGINES:
            raise ValueError(
                f"Unsupported embed engine '{self.engine}'. Known engines: {', '.join(sorted(KNOWN_ENGINES))}"
            )
        module_path, class_name = KNOWN_ENGINES[self.engine]
        return getattr(importlib.import_module(module_path), class_name)

    def get_client(self) -> EmbedClientInterface:
        if self._client is None:
            self._client = self._load_client_class()(helper_config=self.helper_config)
            self.logging.debug("Created embed client for engine '%s'", self.engine)
        return self._client
