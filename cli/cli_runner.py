"""Command line entry point.

Ingest text files, search them, inspect and maintain the vector database,
or start the HTTP server.

Usage:
    vectdb ingest ./notes -r
    vectdb search "how do I rotate keys" -k 5 -e
    python -m cli.cli_runner stats
"""

import argparse
import asyncio
import sys

from services.ingestion.IngestionService import IngestionService, collect_files
from services.search.SearchService import SearchService
from services.search.formatting import format_results_csv, format_results_json, format_results_text
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.exceptions import ModelNotFoundError, ProviderUnavailableError, VectDbError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.chunking import FixedSizeStrategy, SemanticStrategy
from shared.models.config import AppSettings
from shared.store.VectorStore import VectorStore

RECOMMENDED_MODELS = ("nomic-embed-text", "all-minilm", "mxbai-embed-large")


def build_parser(settings: AppSettings) -> argparse.ArgumentParser:
    """Build the argument parser; defaults come from the resolved settings."""
    parser = argparse.ArgumentParser(prog="vectdb", description="Local semantic search over your text files.")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (default: LOG_LEVEL env or info)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest a file or a directory of text files")
    ingest.add_argument("source", help="File or directory to ingest")
    ingest.add_argument("-m", "--model", default=settings.default_model, help="Embedding model")
    ingest.add_argument("-s", "--chunk-size", type=int, default=settings.chunking.max_chunk_size)
    ingest.add_argument("-o", "--overlap", type=int, default=settings.chunking.overlap_size)
    ingest.add_argument(
        "--semantic",
        action="store_true",
        default=settings.chunking.strategy.strip().lower() == "semantic",
        help="Chunk on sentence and paragraph boundaries instead of fixed windows",
    )
    ingest.add_argument("-r", "--recursive", action="store_true", help="Descend into subdirectories")

    search = subparsers.add_parser("search", help="Search ingested documents")
    search.add_argument("query", help="Search text")
    search.add_argument("-k", "--top-k", type=int, default=settings.search.default_top_k)
    search.add_argument("-t", "--threshold", type=float, default=settings.search.similarity_threshold)
    search.add_argument("-e", "--explain", action="store_true", help="Show similarity scores")
    search.add_argument("-f", "--format", choices=["text", "json", "csv"], default="text")

    serve = subparsers.add_parser("serve", help="Start the HTTP API server")
    serve.add_argument("-H", "--host", default=settings.server.host)
    serve.add_argument("-p", "--port", type=int, default=settings.server.port)

    subparsers.add_parser("stats", help="Show database statistics")
    subparsers.add_parser("optimize", help="Run VACUUM and ANALYZE on the database")
    subparsers.add_parser("models", help="List models available in Ollama")
    return parser


##########################################
############### CHECKS ###################
##########################################


async def check_provider(embed_client: EmbedClientInterface, model: str | None = None) -> bool:
    """Print actionable guidance and return False if the provider or model is missing."""
    if not await embed_client.do_healthcheck():
        print(f"Cannot connect to Ollama at {embed_client.get_base_url()}", file=sys.stderr)
        print("\nMake sure Ollama is running:", file=sys.stderr)
        print("  ollama serve", file=sys.stderr)
        return False
    print("Connected to Ollama", file=sys.stderr)

    if model is not None:
        if not await embed_client.has_model(model):
            print(f"Model '{model}' not found in Ollama", file=sys.stderr)
            print("\nPull the model first:", file=sys.stderr)
            print(f"  ollama pull {model}", file=sys.stderr)
            return False
        print(f"Model '{model}' available\n", file=sys.stderr)
    return True


##########################################
############### COMMANDS #################
##########################################


async def handle_ingest(args: argparse.Namespace, settings: AppSettings, helper_config: HelperConfig) -> int:
    if args.semantic:
        strategy = SemanticStrategy(max_size=args.chunk_size)
    else:
        strategy = FixedSizeStrategy(size=args.chunk_size, overlap=args.overlap)

    files = collect_files(args.source, args.recursive)
    if not files:
        print("No files found to ingest.")
        return 0
    print(f"Starting ingestion from: {args.source}\n")

    async with EmbedClientManager(helper_config=helper_config).get_client() as embed_client:
        if not await check_provider(embed_client, args.model):
            return 1

        print(f"Found {len(files)} file(s) to process\n")
        with VectorStore(helper_config, settings.database.path) as store:
            service = IngestionService(helper_config=helper_config, store=store, embed_client=embed_client)
            results = await service.ingest_files(files, args.model, strategy)

    for idx, result in enumerate(results, start=1):
        print(f"[{idx}/{len(results)}] {result.file_path}")
        if result.error:
            print(f"  Error: {result.error}")
        elif result.skipped:
            print("  Skipped (duplicate or empty)")
        else:
            print(f"  {result.chunks_created} chunks, {result.embeddings_created} embeddings")

    print("\n=== Ingestion Complete ===")
    print(f"Files processed: {len(results)}")
    print(f"Files skipped:   {sum(1 for r in results if r.skipped)}")
    print(f"Chunks created:  {sum(r.chunks_created for r in results)}")
    print(f"Embeddings:      {sum(r.embeddings_created for r in results)}")
    return 0


async def handle_search(args: argparse.Namespace, settings: AppSettings, helper_config: HelperConfig) -> int:
    model = settings.default_model
    with VectorStore(helper_config, settings.database.path) as store:
        if store.count_embeddings() == 0:
            print("No embeddings found in database")
            print("\nIngest some documents first:")
            print("  vectdb ingest <file-or-directory>")
            return 1

        async with EmbedClientManager(helper_config=helper_config).get_client() as embed_client:
            if not await check_provider(embed_client, model):
                return 1
            service = SearchService(helper_config=helper_config, store=store, embed_client=embed_client)
            results = await service.search(args.query, model, args.top_k, args.threshold)

    if args.format == "json":
        print(format_results_json(results))
    elif args.format == "csv":
        print(format_results_csv(results), end="")
    else:
        print(format_results_text(results, args.explain))
    return 0


def handle_serve(args: argparse.Namespace) -> int:
    # imported here: the server module configures logging on import
    from server.api_server import serve

    setup_logging(args.log_level)
    print("Starting vectdb web server...")
    print(f"API: http://{args.host}:{args.port}/api")
    print("\nPress Ctrl+C to stop\n")
    serve(args.host, args.port)
    return 0


def handle_stats(settings: AppSettings, helper_config: HelperConfig) -> int:
    with VectorStore(helper_config, settings.database.path) as store:
        stats = store.get_stats()

    print("=== vectdb Statistics ===\n")
    print("Database:")
    print(f"  Path: {settings.database.path}")
    print(f"  Size: {stats.db_size_bytes // 1024} KB ({stats.db_size_bytes} bytes)")
    print()
    print("Content:")
    print(f"  Documents:  {stats.document_count}")
    print(f"  Chunks:     {stats.chunk_count}")
    print(f"  Embeddings: {stats.embedding_count}")

    if stats.document_count > 0:
        print()
        print("Averages:")
        print(f"  Chunks per document: {stats.chunk_count / stats.document_count:.2f}")
        if stats.embedding_count > 0:
            print(f"  Embedding coverage: {stats.embedding_count / stats.chunk_count * 100:.1f}%")
    return 0


def handle_optimize(settings: AppSettings, helper_config: HelperConfig) -> int:
    print("Optimizing database...")
    with VectorStore(helper_config, settings.database.path) as store:
        print("  Running VACUUM...")
        store.vacuum()
        print("  Running ANALYZE...")
        store.analyze()
    print("Database optimization complete")
    return 0


async def handle_models(helper_config: HelperConfig) -> int:
    async with EmbedClientManager(helper_config=helper_config).get_client() as embed_client:
        print(f"Connecting to Ollama at {embed_client.get_base_url()}...\n")
        if not await check_provider(embed_client):
            return 1
        models = await embed_client.do_fetch_models()

    if not models:
        print("No models found. Pull a model first:")
        print(f"  ollama pull {RECOMMENDED_MODELS[0]}")
        return 0

    print(f"\nAvailable Models ({len(models)}):\n")
    for model in models:
        print(f"  - {model.name}")
        print(f"    Size: {model.size / (1024 * 1024):.1f} MB")
        print(f"    Modified: {model.modified_at}")
        print()

    if not any(rec in m.name for m in models for rec in RECOMMENDED_MODELS):
        print("Recommended embedding models:")
        for rec in RECOMMENDED_MODELS:
            print(f"  ollama pull {rec}")
    return 0


async def main(args: argparse.Namespace, settings: AppSettings) -> int:
    """Dispatch a parsed command.

    Returns:
        int: Process exit code.
    """
    logger = setup_logging(args.log_level)
    helper_config = HelperConfig(logger=logger)

    try:
        if args.command == "ingest":
            return await handle_ingest(args, settings, helper_config)
        if args.command == "search":
            return await handle_search(args, settings, helper_config)
        if args.command == "stats":
            return handle_stats(settings, helper_config)
        if args.command == "optimize":
            return handle_optimize(settings, helper_config)
        if args.command == "models":
            return await handle_models(helper_config)
    except ProviderUnavailableError as e:
        logger.error("Embedding provider unavailable: %s", e)
        print(f"Cannot reach the embedding provider: {e}\n\nMake sure Ollama is running:\n  ollama serve")
        return 1
    except ModelNotFoundError as e:
        logger.error("Model not found: %s", e)
        print(f"Model '{e.model}' not found in Ollama\n\nPull the model first:\n  ollama pull {e.model}")
        return 1
    except VectDbError as e:
        logger.error("Command failed: %s", e)
        return 1
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        return 1
    raise ValueError(f"Unknown command: {args.command}")


def run(argv: list[str] | None = None) -> None:
    """Console script entry point."""
    bootstrap_logger = setup_logging()
    settings = AppSettings.from_helper_config(HelperConfig(logger=bootstrap_logger))
    args = build_parser(settings).parse_args(argv)

    # uvicorn owns its event loop, so serve runs outside asyncio.run()
    if args.command == "serve":
        sys.exit(handle_serve(args))
    sys.exit(asyncio.run(main(args, settings)))


if __name__ == "__main__":
    run()
