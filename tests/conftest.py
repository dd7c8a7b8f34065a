"""
Shared test fixtures.

Provides: env-free HelperConfig, in-memory VectorStore, Ollama client factory
backed by httpx.MockTransport, and a fake Ollama server that embeds by keyword.
"""

import json
import os
import logging
from typing import Callable

import httpx
import pytest
import pytest_asyncio

from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from shared.store.VectorStore import VectorStore

# keep test runs from writing logs/app.log into the working directory
os.environ.setdefault("LOG_TO_FILE", "false")

TEST_MODEL = "nomic-embed-text"

# keyword -> axis of a 3-dimensional fake embedding space
KEYWORD_AXES = {"cat": 0, "dog": 1, "fish": 2}


def keyword_vector(text: str) -> list[float]:
    """Deterministic fake embedding: one axis per keyword found in the text."""
    vector = [0.0, 0.0, 0.0]
    for keyword, axis in KEYWORD_AXES.items():
        if keyword in text.lower():
            vector[axis] = 1.0
    if not any(vector):
        vector = [0.1, 0.1, 0.1]
    return vector


def make_helper_config(**overrides: str) -> HelperConfig:
    values = {"EMBED_INITIAL_BACKOFF_MS": "0", "EMBED_OLLAMA_BASE_URL": "http://ollama.test"}
    values.update(overrides)
    return HelperConfig(logger=ColorLogger(logging.getLogger("vectdb.tests")), overrides=values)


@pytest.fixture
def config_factory() -> Callable[..., HelperConfig]:
    """Build a HelperConfig with extra overrides, e.g. config_factory(EMBED_MAX_RETRIES="1")."""
    return make_helper_config


@pytest.fixture
def helper_config() -> HelperConfig:
    return make_helper_config()


@pytest.fixture
def store(helper_config):
    store = VectorStore.in_memory(helper_config)
    yield store
    store.close()


@pytest.fixture
def ollama_handler() -> Callable[[httpx.Request], httpx.Response]:
    """A well-behaved Ollama server that knows TEST_MODEL."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return httpx.Response(
                200,
                json={"models": [{"name": f"{TEST_MODEL}:latest", "size": 274302450, "modified_at": "2024-01-01"}]},
            )
        if request.url.path == "/api/embeddings":
            prompt = json.loads(request.content)["prompt"]
            return httpx.Response(200, json={"embedding": keyword_vector(prompt)})
        return httpx.Response(404, text="not found")

    return handler


@pytest_asyncio.fixture
async def make_embed_client(helper_config):
    """Factory booting EmbedClientOllama clients on a mock transport; closes them afterwards."""
    clients: list[EmbedClientOllama] = []

    async def factory(handler, config: HelperConfig | None = None) -> EmbedClientOllama:
        client = EmbedClientOllama(helper_config=config or helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()


@pytest_asyncio.fixture
async def embed_client(make_embed_client, ollama_handler):
    return await make_embed_client(ollama_handler)
