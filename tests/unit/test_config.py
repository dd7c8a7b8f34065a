import logging

import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.models.chunking import FixedSizeStrategy, SemanticStrategy
from shared.models.config import AppSettings, ChunkingSettings


def _config(**overrides: str) -> HelperConfig:
    return HelperConfig(logger=logging.getLogger("vectdb.tests"), overrides=overrides)


def test_helper_config_reads_overrides_before_env(monkeypatch):
    monkeypatch.setenv("VECTDB_TEST_KEY", "from-env")

    assert _config().get_string_val("VECTDB_TEST_KEY") == "from-env"
    assert _config(VECTDB_TEST_KEY="override").get_string_val("vectdb_test_key") == "override"


def test_helper_config_missing_required_raises(monkeypatch):
    monkeypatch.delenv("VECTDB_TEST_MISSING", raising=False)

    with pytest.raises(ValueError):
        _config().get_string_val("VECTDB_TEST_MISSING")
    assert _config(VECTDB_TEST_MISSING="   ").get_string_val("VECTDB_TEST_MISSING", default="fallback") == "fallback"


def test_helper_config_numbers_and_bools():
    config = _config(A="3", B="0.25", C="yes", D="off", E="abc")

    assert config.get_number_val("A") == 3
    assert config.get_number_val("B") == 0.25
    assert config.get_bool_val("C") is True
    assert config.get_bool_val("D") is False
    with pytest.raises(ValueError):
        config.get_number_val("E")


def test_app_settings_defaults(monkeypatch, tmp_path):
    for key in ("DB_PATH", "EMBED_MODEL", "CHUNK_STRATEGY", "CHUNK_MAX_SIZE", "CHUNK_OVERLAP",
                "SEARCH_TOP_K", "SEARCH_THRESHOLD", "SERVER_HOST", "SERVER_PORT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))

    settings = AppSettings.from_helper_config(_config())

    assert settings.database.path == str(tmp_path / "data" / "vectors.db")
    assert settings.default_model == "nomic-embed-text"
    assert settings.chunking.to_strategy() == FixedSizeStrategy(size=512, overlap=50)
    assert settings.search.default_top_k == 10
    assert settings.search.similarity_threshold == 0.0
    assert settings.server.host == "127.0.0.1"
    assert settings.server.port == 3000


def test_app_settings_from_env_values():
    settings = AppSettings.from_helper_config(
        _config(
            DB_PATH="/tmp/x.db",
            EMBED_MODEL="all-minilm",
            CHUNK_STRATEGY="Semantic",
            CHUNK_MAX_SIZE="256",
            SEARCH_THRESHOLD="0.5",
            SERVER_PORT="8080",
        )
    )

    assert settings.database.path == "/tmp/x.db"
    assert settings.default_model == "all-minilm"
    assert settings.chunking.to_strategy() == SemanticStrategy(max_size=256)
    assert settings.search.similarity_threshold == 0.5
    assert settings.server.port == 8080


def test_app_settings_are_immutable():
    settings = AppSettings.from_helper_config(_config(DB_PATH="/tmp/x.db"))

    with pytest.raises(ValueError):
        settings.default_model = "other"


def test_chunking_settings_unknown_strategy_falls_back_to_fixed():
    assert ChunkingSettings(strategy="whatever", max_chunk_size=10, overlap_size=2).to_strategy() == FixedSizeStrategy(
        size=10, overlap=2
    )
