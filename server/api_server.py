"""FastAPI application entry point for the vectdb HTTP server."""

import os
import sqlite3
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import AppSettings
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.exceptions import (
    EmbeddingFailedError,
    InvalidInputError,
    ModelNotFoundError,
    ProviderUnavailableError,
)
from server.routers.SearchRouter import router as search_router
from server.routers.SystemRouter import router as system_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)
    app.state.settings = AppSettings.from_helper_config(app.state.helper_config)

    embed_client = EmbedClientManager(helper_config=app.state.helper_config).get_client()
    await embed_client.boot()
    app.state.embed_client = embed_client

    # a missing provider is not fatal, /api/health reports it
    if not await embed_client.do_healthcheck():
        logging.warning(
            "Embedding provider '%s' is not reachable at %s. Search will fail until it is started.",
            embed_client.get_engine_name(),
            embed_client.get_base_url(),
        )
    logging.info("Using database at %s", app.state.settings.database.path)

    # while the app is running...
    yield

    # when the app shuts down, close the client connection
    logging.info("Shutting down, closing embed client...")
    await embed_client.close()
    logging.info("Embed client closed.")


app = FastAPI(
    title="vectdb",
    description=(
        "Local semantic search over ingested text documents. "
        "Chunks are embedded via Ollama and ranked by cosine similarity "
        "against a SQLite vector store. Query via GET /api/search."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(search_router)


##########################################
############ ERROR HANDLERS ##############
##########################################


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    logging.warning("Request failed with %d: %s", status_code, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(ProviderUnavailableError)
async def provider_unavailable_handler(request: Request, exc: ProviderUnavailableError) -> JSONResponse:
    return _error_response(503, exc)


@app.exception_handler(ModelNotFoundError)
async def model_not_found_handler(request: Request, exc: ModelNotFoundError) -> JSONResponse:
    return _error_response(404, exc)


@app.exception_handler(EmbeddingFailedError)
async def embedding_failed_handler(request: Request, exc: EmbeddingFailedError) -> JSONResponse:
    return _error_response(502, exc)


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    return _error_response(400, exc)


@app.exception_handler(sqlite3.Error)
async def storage_error_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
    return _error_response(500, exc)


def serve(host: str, port: int) -> None:
    """Run the API server with uvicorn until interrupted."""
    logging.info(
        "Starting vectdb API Server v%s from root dir: %s on %s:%d...",
        app_version,
        os.environ.get("ROOT_DIR", os.getcwd()),
        host,
        port,
    )
    uvicorn.run(app, host=host, port=port)


# Server Start
if __name__ == "__main__":
    settings = AppSettings.from_helper_config(HelperConfig(logger=logging))
    serve(settings.server.host, settings.server.port)
