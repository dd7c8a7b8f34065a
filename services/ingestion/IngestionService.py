"""Ingestion service.

Reads text files, splits their content into chunks, generates embeddings
via an EmbedClient, and persists documents, chunks and vectors into the
VectorStore. Duplicate content (same SHA-256 fingerprint) is skipped before
any provider call is made.
"""

import asyncio
import os

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.exceptions import EmbeddingCountMismatchError, InvalidInputError
from shared.helper.HelperConfig import HelperConfig
from shared.models.chunking import ChunkStrategy
from shared.models.document import Chunk, Document, Embedding
from shared.models.results import IngestionResult
from shared.store.VectorStore import VectorStore
from services.ingestion.chunking import chunk_text

SUPPORTED_EXTENSIONS = ("txt", "md", "markdown")


def _get_extension(file_path: str) -> str:
    return os.path.splitext(file_path)[1].lstrip(".").lower()


def is_supported_file(file_path: str) -> bool:
    """Return True for files with a supported text extension (used for directory scans)."""
    return _get_extension(file_path) in SUPPORTED_EXTENSIONS


def collect_files(source: str, recursive: bool = False) -> list[str]:
    """Collect the files to ingest from a file or directory path.

    Args:
        source (str): A file path, or a directory to scan for supported files.
        recursive (bool): Descend into subdirectories.

    Returns:
        list[str]: Sorted file paths. A file source is returned as-is.

    Raises:
        InvalidInputError: If source is neither a file nor a directory.
    """
    if os.path.isfile(source):
        return [source]
    if not os.path.isdir(source):
        raise InvalidInputError(f"Source is not a file or directory: {source}")

    files: list[str] = []
    if recursive:
        for dirpath, _, filenames in os.walk(source, followlinks=True):
            files.extend(os.path.join(dirpath, name) for name in filenames)
    else:
        files.extend(os.path.join(source, name) for name in os.listdir(source))
    return sorted(f for f in files if os.path.isfile(f) and is_supported_file(f))


class IngestionService:
    """Orchestrates chunking, embedding and persistence for source files."""

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
    ############### CORE INGEST ##############
    ##########################################

    async def ingest_files(self, file_paths: list[str], model: str, strategy: ChunkStrategy) -> list[IngestionResult]:
        """Ingest several files one after another.

        A failure on one file is logged and recorded as a skipped result with its
        error message; the remaining files are still processed.

        Args:
            file_paths (list[str]): Files to ingest, in order.
            model (str): Embedding model name.
            strategy (ChunkStrategy): How to chunk each file.

        Returns:
            list[IngestionResult]: One result per input path, in order.
        """
        results: list[IngestionResult] = []
        for file_path in file_paths:
            try:
                results.append(await self.ingest_file(file_path, model, strategy))
            except Exception as exc:
                self.logging.warning("Failed to ingest %s: %s", file_path, exc)
                results.append(IngestionResult(file_path=file_path, skipped=True, error=str(exc)))

        ingested = sum(1 for r in results if not r.skipped)
        self.logging.info(
            "Ingestion complete: %d ingested, %d skipped.", ingested, len(results) - ingested, color="green"
        )
        return results

    async def ingest_file(self, file_path: str, model: str, strategy: ChunkStrategy) -> IngestionResult:
        """Ingest a single file.

        Args:
            file_path (str): Path of a txt/md/markdown (or extensionless) file.
            model (str): Embedding model name.
            strategy (ChunkStrategy): How to chunk the content.

        Returns:
            IngestionResult: skipped=True with zero counts for empty or duplicate content;
                for duplicates document_id is the existing document's id.

        Raises:
            InvalidInputError: If the path is missing, not a file, unsupported or not UTF-8 text.
            ProviderUnavailableError: If the provider stays unreachable.
            EmbeddingFailedError: If embedding fails or returns the wrong number of vectors.
            sqlite3.Error: On storage failures.
        """
        self.logging.info("Ingesting file: %s", file_path)

        content = self._load_file(file_path)
        if not content.strip():
            self.logging.warning("File is empty, skipping: %s", file_path)
            return IngestionResult(file_path=file_path, skipped=True)

        document = Document.from_content(
            source=file_path,
            content=content,
            metadata={
                "file_name": os.path.basename(file_path),
                "file_size": str(os.path.getsize(file_path)),
            },
        )

        # deduplication gate, before any provider call
        existing = self._store.get_document_by_hash(document.content_hash)
        if existing is not None:
            self.logging.info("Document already exists (duplicate content), skipping: %s", file_path)
            return IngestionResult(file_path=file_path, document_id=existing.id, skipped=True)

        chunk_texts = chunk_text(content, strategy)
        with self._store.transaction():
            document_id = self._store.insert_document(document)
            chunk_ids = [
                self._store.insert_chunk(Chunk.from_text(document_id, idx, text))
                for idx, text in enumerate(chunk_texts)
            ]
        self.logging.info("Created document %d with %d chunks", document_id, len(chunk_ids))

        try:
            self.logging.info("Generating embeddings using model: %s", model)
            vectors = await self._embed_client.embed_batch(model, chunk_texts)
            if len(vectors) != len(chunk_ids):
                raise EmbeddingCountMismatchError(expected=len(chunk_ids), actual=len(vectors))

            with self._store.transaction():
                for chunk_id, vector in zip(chunk_ids, vectors):
                    self._store.upsert_embedding(Embedding.create(chunk_id, model, vector))
        except (Exception, asyncio.CancelledError):
            # leave no half-ingested document behind so the file can be retried
            self.logging.error("Ingestion of %s failed, removing document %d", file_path, document_id)
            self._store.delete_document(document_id)
            raise

        self.logging.info("Successfully ingested %s", file_path)
        return IngestionResult(
            file_path=file_path,
            document_id=document_id,
            chunks_created=len(chunk_ids),
            embeddings_created=len(vectors),
        )

    ##########################################
    ################ HELPERS #################
    ##########################################

    def _load_file(self, file_path: str) -> str:
        """Read a supported file as UTF-8 text without newline translation.

        Raises:
            InvalidInputError: If the file is missing, not a regular file, has an
                unsupported extension or is not valid UTF-8.
        """
        if not os.path.exists(file_path):
            raise InvalidInputError(f"File does not exist: {file_path}")
        if not os.path.isfile(file_path):
            raise InvalidInputError(f"Path is not a file: {file_path}")

        extension = _get_extension(file_path)
        if extension and extension not in SUPPORTED_EXTENSIONS:
            raise InvalidInputError(
                f"Unsupported file type: .{extension}. Currently supported: {', '.join(SUPPORTED_EXTENSIONS)}"
            )

        with open(file_path, "rb") as f:
            raw = f.read()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidInputError(f"File is not valid UTF-8 text: {file_path}") from exc
