import os

from pydantic import BaseModel

from shared.helper.HelperConfig import HelperConfig
from shared.models.chunking import ChunkStrategy, FixedSizeStrategy, SemanticStrategy


class EnvConfig(BaseModel):
    """One engine-scoped setting a client reads at construction.

    Attributes:
        env_key (str): Key without the <TYPE>_<ENGINE>_ prefix, e.g. "BASE_URL".
        val_type (str): "string", "number" or "bool".
        default (str | int | float | bool | None): Fallback value; None makes the key required.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | None = None


class DatabaseSettings(BaseModel):
    path: str


class ChunkingSettings(BaseModel):
    max_chunk_size: int = 512
    overlap_size: int = 50
    strategy: str = "fixed"

    def to_strategy(self) -> ChunkStrategy:
        """Convert the configured strategy name into a chunking strategy.

        Returns:
            ChunkStrategy: SemanticStrategy for "semantic", FixedSizeStrategy otherwise.
        """
        if self.strategy.strip().lower() == "semantic":
            return SemanticStrategy(max_size=self.max_chunk_size)
        return FixedSizeStrategy(size=self.max_chunk_size, overlap=self.overlap_size)


class SearchSettings(BaseModel):
    default_top_k: int = 10
    similarity_threshold: float = 0.0


class ServerSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3000


class AppSettings(BaseModel):
    """
    Immutable application settings passed into pipelines, the CLI and the server.

    Built once from the environment via from_helper_config(); nothing below the
    entry points reads environment variables directly.
    """

    model_config = {"frozen": True}

    database: DatabaseSettings
    default_model: str = "nomic-embed-text"
    chunking: ChunkingSettings = ChunkingSettings()
    search: SearchSettings = SearchSettings()
    server: ServerSettings = ServerSettings()

    @classmethod
    def from_helper_config(cls, helper_config: HelperConfig) -> "AppSettings":
        """Read all application settings from environment variables.

        Args:
            helper_config (HelperConfig): The env-backed configuration helper.

        Returns:
            AppSettings: The resolved settings.

        Raises:
            ValueError: If a numeric variable cannot be parsed.
        """
        root_dir = os.getenv("ROOT_DIR") or os.getcwd()
        default_db_path = os.path.join(root_dir, "data", "vectors.db")
        return cls(
            database=DatabaseSettings(path=helper_config.get_string_val("DB_PATH", default=default_db_path)),
            default_model=helper_config.get_string_val("EMBED_MODEL", default="nomic-embed-text"),
            chunking=ChunkingSettings(
                max_chunk_size=int(helper_config.get_number_val("CHUNK_MAX_SIZE", default=512)),
                overlap_size=int(helper_config.get_number_val("CHUNK_OVERLAP", default=50)),
                strategy=helper_config.get_string_val("CHUNK_STRATEGY", default="fixed"),
            ),
            search=SearchSettings(
                default_top_k=int(helper_config.get_number_val("SEARCH_TOP_K", default=10)),
                similarity_threshold=float(helper_config.get_number_val("SEARCH_THRESHOLD", default=0.0)),
            ),
            server=ServerSettings(
                host=helper_config.get_string_val("SERVER_HOST", default="127.0.0.1"),
                port=int(helper_config.get_number_val("SERVER_PORT", default=3000)),
            ),
        )
