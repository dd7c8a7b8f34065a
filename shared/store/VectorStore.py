"""SQLite-backed repository for documents, chunks and embeddings.

All methods are synchronous and never suspend. Callers running on an event
loop must finish any awaited provider call before touching the store, so a
transaction is never held open across a network round trip.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Chunk, Document, Embedding, SearchResult
from shared.models.results import DatabaseStats
from shared.store.vector_codec import cosine_similarity, decode_vector, encode_vector

IN_MEMORY = ":memory:"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS documents (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        source TEXT NOT NULL,
        content_hash TEXT UNIQUE NOT NULL,
        metadata TEXT,
        created_at INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS chunks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        document_id INTEGER NOT NULL,
        chunk_index INTEGER NOT NULL,
        content TEXT NOT NULL,
        token_count INTEGER,
        FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE,
        UNIQUE(document_id, chunk_index)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS embeddings (
        chunk_id INTEGER PRIMARY KEY,
        model TEXT NOT NULL,
        vector BLOB NOT NULL,
        dimension INTEGER NOT NULL,
        FOREIGN KEY (chunk_id) REFERENCES chunks(id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id)",
    "CREATE INDEX IF NOT EXISTS idx_embeddings_model ON embeddings(model)",
)

_DOCUMENT_COLUMNS = "id, source, content_hash, metadata, created_at"
_CHUNK_COLUMNS = "id, document_id, chunk_index, content, token_count"


class VectorStore:
    """Durable repository for documents, chunks and embeddings.

    Owns the similarity scan: every query is an exact linear comparison
    against all stored vectors of one model.
    """

    def __init__(self, helper_config: HelperConfig, db_path: str = IN_MEMORY) -> None:
        self.logging = helper_config.get_logger()
        self.db_path = db_path
        self._in_transaction = False

        if db_path == IN_MEMORY:
            self.logging.info("Creating in-memory database")
        else:
            self.logging.info("Opening database at: %s", db_path)
            parent = os.path.dirname(os.path.abspath(db_path))
            os.makedirs(parent, exist_ok=True)

        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        if db_path != IN_MEMORY:
            # concurrent readers, single writer
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.execute("PRAGMA synchronous = NORMAL")
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    @classmethod
    def in_memory(cls, helper_config: HelperConfig) -> "VectorStore":
        """Create a store backed by a private in-memory database."""
        return cls(helper_config, IN_MEMORY)

    def _init_schema(self) -> None:
        self.logging.debug("Initializing database schema")
        for statement in _SCHEMA:
            self._conn.execute(statement)
        self._conn.commit()

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "VectorStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator["VectorStore"]:
        """Group several writes into one all-or-nothing transaction.

        Commits when the block exits normally, rolls back on any exception.
        Nested use joins the outer transaction.
        """
        if self._in_transaction:
            yield self
            return
        self._in_transaction = True
        try:
            yield self
            self._conn.commit()
        except BaseException:
            self._conn.rollback()
            raise
        finally:
            self._in_transaction = False

    def _commit(self) -> None:
        if not self._in_transaction:
            self._conn.commit()

    def _count(self, table: str) -> int:
        return self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    ##########################################
    ############### DOCUMENTS ################
    ##########################################

    def insert_document(self, doc: Document) -> int:
        """Insert a new document and return its id.

        Raises:
            sqlite3.IntegrityError: If a document with the same content_hash exists.
        """
        self.logging.debug("Inserting document: %s", doc.source)
        cursor = self._conn.execute(
            "INSERT INTO documents (source, content_hash, metadata, created_at) VALUES (?, ?, ?, ?)",
            (doc.source, doc.content_hash, json.dumps(doc.metadata), doc.created_at),
        )
        self._commit()
        self.logging.info("Inserted document with id: %d", cursor.lastrowid)
        return cursor.lastrowid

    def get_document(self, document_id: int) -> Document | None:
        row = self._conn.execute(
            f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?", (document_id,)
        ).fetchone()
        return _row_to_document(row) if row else None

    def get_document_by_hash(self, content_hash: str) -> Document | None:
        """Look up a document by its content fingerprint (deduplication check)."""
        row = self._conn.execute(
            f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE content_hash = ?", (content_hash,)
        ).fetchone()
        return _row_to_document(row) if row else None

    def delete_document(self, document_id: int) -> bool:
        """Delete a document together with its chunks and embeddings.

        Returns:
            bool: True if a row was deleted.
        """
        cursor = self._conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        self._commit()
        if cursor.rowcount:
            self.logging.info("Deleted document with id: %d", document_id)
        return cursor.rowcount > 0

    def count_documents(self) -> int:
        return self._count("documents")

    ##########################################
    ################ CHUNKS ##################
    ##########################################

    def insert_chunk(self, chunk: Chunk) -> int:
        self.logging.debug("Inserting chunk %d for document %d", chunk.chunk_index, chunk.document_id)
        cursor = self._conn.execute(
            "INSERT INTO chunks (document_id, chunk_index, content, token_count) VALUES (?, ?, ?, ?)",
            (chunk.document_id, chunk.chunk_index, chunk.content, chunk.token_count),
        )
        self._commit()
        return cursor.lastrowid

    def get_chunk(self, chunk_id: int) -> Chunk | None:
        row = self._conn.execute(f"SELECT {_CHUNK_COLUMNS} FROM chunks WHERE id = ?", (chunk_id,)).fetchone()
        return _row_to_chunk(row) if row else None

    def get_chunks_for_document(self, document_id: int) -> list[Chunk]:
        """Return all chunks of a document ordered by chunk_index."""
        rows = self._conn.execute(
            f"SELECT {_CHUNK_COLUMNS} FROM chunks WHERE document_id = ? ORDER BY chunk_index",
            (document_id,),
        ).fetchall()
        return [_row_to_chunk(row) for row in rows]

    def count_chunks(self) -> int:
        return self._count("chunks")

    ##########################################
    ############### EMBEDDINGS ###############
    ##########################################

    def upsert_embedding(self, embedding: Embedding) -> None:
        """Insert or replace the embedding of a chunk in a single statement."""
        self.logging.debug("Upserting embedding for chunk %d", embedding.chunk_id)
        self._conn.execute(
            "INSERT OR REPLACE INTO embeddings (chunk_id, model, vector, dimension) VALUES (?, ?, ?, ?)",
            (embedding.chunk_id, embedding.model, encode_vector(embedding.vector), embedding.dimension),
        )
        self._commit()

    def get_embedding(self, chunk_id: int) -> Embedding | None:
        row = self._conn.execute(
            "SELECT chunk_id, model, vector, dimension FROM embeddings WHERE chunk_id = ?", (chunk_id,)
        ).fetchone()
        if row is None:
            return None
        return Embedding(
            chunk_id=row["chunk_id"],
            model=row["model"],
            vector=decode_vector(row["vector"]),
            dimension=row["dimension"],
        )

    def count_embeddings(self) -> int:
        return self._count("embeddings")

    ##########################################
    ################ SEARCH ##################
    ##########################################

    def search_similar(self, query_vector: list[float], model: str, top_k: int) -> list[SearchResult]:
        """Rank every stored embedding of `model` by cosine similarity to the query.

        Full linear scan, no index. Ties keep storage iteration order.

        Args:
            query_vector (list[float]): The embedded query.
            model (str): Only embeddings produced by this model are compared.
            top_k (int): Maximum number of results.

        Returns:
            list[SearchResult]: At most top_k results, most similar first.
        """
        self.logging.debug("Searching for similar vectors (top_k=%d)", top_k)
        rows = self._conn.execute(
            """
            SELECT e.vector,
                   c.id AS chunk_id, c.document_id, c.chunk_index, c.content, c.token_count,
                   d.id AS doc_id, d.source, d.content_hash, d.metadata, d.created_at
            FROM embeddings e
            JOIN chunks c ON e.chunk_id = c.id
            JOIN documents d ON c.document_id = d.id
            WHERE e.model = ?
            """,
            (model,),
        )

        scored = [(cosine_similarity(query_vector, decode_vector(row["vector"])), row) for row in rows]
        scored.sort(key=lambda item: item[0], reverse=True)

        # models only for the rows that survive the cut
        return [_row_to_search_result(row, similarity) for similarity, row in scored[: max(top_k, 0)]]

    ##########################################
    ############## MAINTENANCE ###############
    ##########################################

    def vacuum(self) -> None:
        """Rebuild the database file to reclaim free pages. Blocks until done."""
        self.logging.info("Running VACUUM on database")
        self._conn.commit()
        self._conn.execute("VACUUM")

    def analyze(self) -> None:
        """Refresh query planner statistics. Blocks until done."""
        self.logging.info("Running ANALYZE on database")
        self._conn.execute("ANALYZE")
        self._conn.commit()

    def get_stats(self) -> DatabaseStats:
        page_count = self._conn.execute("PRAGMA page_count").fetchone()[0]
        page_size = self._conn.execute("PRAGMA page_size").fetchone()[0]
        return DatabaseStats(
            document_count=self.count_documents(),
            chunk_count=self.count_chunks(),
            embedding_count=self.count_embeddings(),
            db_size_bytes=page_count * page_size,
        )


def _load_metadata(raw: str | None) -> dict[str, str]:
    return json.loads(raw) if raw else {}


def _row_to_document(row: sqlite3.Row) -> Document:
    return Document(
        id=row["id"],
        source=row["source"],
        content_hash=row["content_hash"],
        metadata=_load_metadata(row["metadata"]),
        created_at=row["created_at"],
    )


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        content=row["content"],
        token_count=row["token_count"],
    )


def _row_to_search_result(row: sqlite3.Row, similarity: float) -> SearchResult:
    chunk = Chunk(
        id=row["chunk_id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        content=row["content"],
        token_count=row["token_count"],
    )
    document = Document(
        id=row["doc_id"],
        source=row["source"],
        content_hash=row["content_hash"],
        metadata=_load_metadata(row["metadata"]),
        created_at=row["created_at"],
    )
    return SearchResult(chunk=chunk, document=document, similarity=similarity)
