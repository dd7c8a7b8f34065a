import pytest
from pydantic import ValidationError

from services.ingestion.chunking import chunk_fixed_size, chunk_semantic, chunk_text, split_into_sentences
from shared.models.chunking import FixedSizeStrategy, SemanticStrategy


def test_fixed_size_windows_overlap():
    assert chunk_fixed_size("0123456789", 5, 2) == ["01234", "34567", "6789"]


def test_chunk_text_dispatches_on_strategy():
    assert chunk_text("0123456789", FixedSizeStrategy(size=5, overlap=2)) == ["01234", "34567", "6789"]
    assert chunk_text("One. Two.", SemanticStrategy(max_size=100)) == ["One. Two."]


def test_empty_text_yields_no_chunks():
    assert chunk_text("", FixedSizeStrategy()) == []
    assert chunk_text("", SemanticStrategy()) == []


def test_fixed_size_returns_whole_text_when_window_cannot_advance():
    assert chunk_fixed_size("abcdef", 3, 3) == ["abcdef"]
    assert chunk_fixed_size("abcdef", 2, 5) == ["abcdef"]


def test_fixed_size_drops_whitespace_only_windows():
    assert chunk_fixed_size("ab     ", 2, 0) == ["ab"]


def test_fixed_size_short_text_is_single_chunk():
    assert chunk_fixed_size("hello", 512, 50) == ["hello"]


def test_fixed_size_counts_grapheme_clusters():
    # "e" + combining acute accent is one user-perceived character
    text = "e\u0301" * 3
    assert chunk_fixed_size(text, 2, 0) == ["e\u0301e\u0301", "e\u0301"]


def test_split_into_sentences():
    assert split_into_sentences("Hi! How are you? Fine.") == ["Hi!", "How are you?", "Fine."]


def test_split_into_sentences_ignores_inner_periods():
    assert split_into_sentences("Pi is 3.14 roughly. Yes") == ["Pi is 3.14 roughly.", "Yes"]


def test_semantic_packs_sentences_up_to_max_size():
    assert chunk_semantic("Aaaa. Bbbb. Cccc.", 11) == ["Aaaa. Bbbb.", "Cccc."]


def test_semantic_joins_paragraphs_with_newline():
    assert chunk_semantic("Para one.\n\nPara two.", 100) == ["Para one.\nPara two."]


def test_semantic_splits_oversized_sentence():
    chunks = chunk_semantic("Short. " + "x" * 25, 10)

    assert chunks == ["Short.", "x" * 10, "x" * 10, "x" * 7]


def test_semantic_chunks_respect_max_size():
    text = "The quick brown fox jumps. Over the lazy dog! Again and again?\n\nNew paragraph here. And more."
    for chunk in chunk_semantic(text, 30):
        assert len(chunk) <= 30


def test_strategies_reject_negative_sizes():
    with pytest.raises(ValidationError):
        FixedSizeStrategy(size=-1)
    with pytest.raises(ValidationError):
        SemanticStrategy(max_size=-5)
