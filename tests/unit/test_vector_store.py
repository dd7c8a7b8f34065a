import os
import sqlite3

import pytest

from shared.models.document import Chunk, Document, Embedding
from shared.store.VectorStore import VectorStore


def _add_document(store: VectorStore, content: str, source: str = "doc.txt") -> int:
    return store.insert_document(Document.from_content(source, content, {"file_name": source}))


def _add_chunk(store: VectorStore, document_id: int, index: int, text: str, vector: list[float], model="m") -> int:
    chunk_id = store.insert_chunk(Chunk.from_text(document_id, index, text))
    store.upsert_embedding(Embedding.create(chunk_id, model, vector))
    return chunk_id


def test_insert_and_get_document(store):
    doc_id = _add_document(store, "hello world")

    doc = store.get_document(doc_id)
    assert doc.id == doc_id
    assert doc.source == "doc.txt"
    assert doc.metadata == {"file_name": "doc.txt"}
    assert store.get_document_by_hash(doc.content_hash).id == doc_id
    assert store.get_document(doc_id + 100) is None


def test_duplicate_content_hash_is_rejected(store):
    _add_document(store, "same")

    with pytest.raises(sqlite3.IntegrityError):
        _add_document(store, "same", source="other.txt")


def test_chunks_are_returned_in_index_order(store):
    doc_id = _add_document(store, "abc")
    store.insert_chunk(Chunk.from_text(doc_id, 1, "second"))
    store.insert_chunk(Chunk.from_text(doc_id, 0, "first"))

    chunks = store.get_chunks_for_document(doc_id)
    assert [c.content for c in chunks] == ["first", "second"]
    assert chunks[0].token_count == len("first") // 4


def test_duplicate_chunk_index_is_rejected(store):
    doc_id = _add_document(store, "abc")
    store.insert_chunk(Chunk.from_text(doc_id, 0, "a"))

    with pytest.raises(sqlite3.IntegrityError):
        store.insert_chunk(Chunk.from_text(doc_id, 0, "b"))


def test_upsert_embedding_replaces_existing(store):
    doc_id = _add_document(store, "abc")
    chunk_id = _add_chunk(store, doc_id, 0, "a", [1.0, 0.0])

    store.upsert_embedding(Embedding.create(chunk_id, "m2", [0.0, 1.0, 0.5]))

    embedding = store.get_embedding(chunk_id)
    assert embedding.model == "m2"
    assert embedding.vector == [0.0, 1.0, 0.5]
    assert embedding.dimension == 3
    assert store.count_embeddings() == 1


def test_embedding_dimension_must_match_vector():
    with pytest.raises(ValueError):
        Embedding(chunk_id=1, model="m", vector=[1.0, 2.0], dimension=3)


def test_delete_document_cascades(store):
    doc_id = _add_document(store, "abc")
    _add_chunk(store, doc_id, 0, "a", [1.0])
    _add_chunk(store, doc_id, 1, "b", [1.0])

    assert store.delete_document(doc_id) is True
    assert store.count_documents() == 0
    assert store.count_chunks() == 0
    assert store.count_embeddings() == 0
    assert store.delete_document(doc_id) is False


def test_search_similar_ranks_by_cosine(store):
    doc_id = _add_document(store, "animals")
    _add_chunk(store, doc_id, 0, "cat", [1.0, 0.0])
    _add_chunk(store, doc_id, 1, "mostly cat", [0.9, 0.1])
    _add_chunk(store, doc_id, 2, "dog", [0.0, 1.0])

    results = store.search_similar([1.0, 0.0], "m", top_k=2)

    assert [r.chunk.content for r in results] == ["cat", "mostly cat"]
    assert results[0].similarity == pytest.approx(1.0)
    assert results[0].document.source == "doc.txt"
    assert results[0].similarity >= results[1].similarity


def test_search_similar_filters_by_model(store):
    doc_id = _add_document(store, "animals")
    _add_chunk(store, doc_id, 0, "cat", [1.0, 0.0], model="a")
    _add_chunk(store, doc_id, 1, "dog", [1.0, 0.0], model="b")

    results = store.search_similar([1.0, 0.0], "b", top_k=10)

    assert [r.chunk.content for r in results] == ["dog"]
    assert store.search_similar([1.0, 0.0], "unknown", top_k=10) == []


def test_search_similar_empty_store(store):
    assert store.search_similar([1.0], "m", top_k=5) == []


def test_search_similar_builds_models_only_for_top_k(store, monkeypatch):
    doc_id = _add_document(store, "many")
    for idx in range(5):
        _add_chunk(store, doc_id, idx, f"chunk {idx}", [1.0, float(idx)])
    built: list[str] = []

    def counting_chunk(**fields):
        built.append(fields["content"])
        return Chunk(**fields)

    monkeypatch.setattr("shared.store.VectorStore.Chunk", counting_chunk)

    results = store.search_similar([1.0, 0.0], "m", top_k=2)

    assert [r.chunk.content for r in results] == ["chunk 0", "chunk 1"]
    assert built == ["chunk 0", "chunk 1"]
    assert store.search_similar([1.0, 0.0], "m", top_k=0) == []


def test_transaction_rolls_back_on_error(store):
    with pytest.raises(RuntimeError):
        with store.transaction():
            _add_document(store, "rolled back")
            raise RuntimeError("boom")

    assert store.count_documents() == 0


def test_transaction_commits(store):
    with store.transaction():
        doc_id = _add_document(store, "kept")
        store.insert_chunk(Chunk.from_text(doc_id, 0, "kept"))

    assert store.count_documents() == 1
    assert store.count_chunks() == 1


def test_stats_snapshot(store):
    doc_id = _add_document(store, "abc")
    _add_chunk(store, doc_id, 0, "a", [1.0, 2.0])
    store.insert_chunk(Chunk.from_text(doc_id, 1, "b"))

    stats = store.get_stats()

    assert stats.document_count == 1
    assert stats.chunk_count == 2
    assert stats.embedding_count == 1
    assert stats.db_size_bytes > 0


def test_file_database_persists_and_optimizes(helper_config, tmp_path):
    db_path = os.path.join(tmp_path, "nested", "dir", "vectors.db")

    with VectorStore(helper_config, db_path) as store:
        doc_id = _add_document(store, "persisted")
        _add_chunk(store, doc_id, 0, "persisted", [0.5, 0.5])
        store.vacuum()
        store.analyze()

    assert os.path.isfile(db_path)
    with VectorStore(helper_config, db_path) as reopened:
        assert reopened.count_documents() == 1
        assert reopened.get_embedding(reopened.get_chunks_for_document(doc_id)[0].id).vector == [0.5, 0.5]
