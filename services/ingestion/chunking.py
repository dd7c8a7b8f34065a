"""Text chunking strategies.

Sizes are counted in grapheme clusters (user-perceived characters) so a
chunk boundary never splits a multi-codepoint character.
"""

import regex

from shared.models.chunking import ChunkStrategy, SemanticStrategy

_GRAPHEME = regex.compile(r"\X")
_PARAGRAPH_BREAK = regex.compile(r"\n\s*\n")
_SENTENCE_TERMINATORS = frozenset(".!?")


def _graphemes(text: str) -> list[str]:
    return _GRAPHEME.findall(text)


def chunk_text(text: str, strategy: ChunkStrategy) -> list[str]:
    """Split `text` into ordered chunks according to `strategy`.

    Pure and deterministic; any input string is accepted.

    Args:
        text (str): The document text.
        strategy (ChunkStrategy): FixedSizeStrategy or SemanticStrategy.

    Returns:
        list[str]: Ordered chunk texts. Empty input yields an empty list.
    """
    if isinstance(strategy, SemanticStrategy):
        return chunk_semantic(text, strategy.max_size)
    return chunk_fixed_size(text, strategy.size, strategy.overlap)


def chunk_fixed_size(text: str, size: int, overlap: int) -> list[str]:
    """Split text into windows of `size` graphemes, each starting `size - overlap` after the previous.

    Whitespace-only windows are dropped. If `size <= overlap` the window could never
    advance, so the whole text is returned as a single chunk.

    >>> chunk_fixed_size("0123456789", 5, 2)
    ['01234', '34567', '6789']
    """
    if not text:
        return []
    if size <= overlap:
        return [text]

    graphemes = _graphemes(text)
    step = size - overlap
    chunks: list[str] = []
    start = 0
    while start < len(graphemes):
        end = min(start + size, len(graphemes))
        window = "".join(graphemes[start:end])
        if window.strip():
            chunks.append(window)
        if end == len(graphemes):
            break
        start += step
    return chunks


def chunk_semantic(text: str, max_size: int) -> list[str]:
    """Pack whole sentences into chunks of at most `max_size` graphemes.

    Paragraphs are separated by blank lines, sentences end at ".", "!" or "?"
    followed by whitespace or end of text. Sentences are added to a running
    buffer until the next one would not fit; the buffer is then emitted and
    restarted with that sentence. A sentence longer than `max_size` on its own
    is cut with chunk_fixed_size() using an overlap of a tenth of `max_size`.
    """
    chunks: list[str] = []
    buffer = ""
    buffer_len = 0

    for paragraph in _PARAGRAPH_BREAK.split(text):
        paragraph = paragraph.strip()
        if not paragraph:
            continue

        separator = "\n"  # first sentence of a paragraph joins the buffer on a new line
        for sentence in split_into_sentences(paragraph):
            sentence_len = len(_graphemes(sentence))

            if sentence_len > max_size:
                if buffer:
                    chunks.append(buffer)
                    buffer, buffer_len = "", 0
                chunks.extend(chunk_fixed_size(sentence, max_size, max_size // 10))
            elif not buffer:
                buffer, buffer_len = sentence, sentence_len
            elif buffer_len + len(separator) + sentence_len > max_size:
                chunks.append(buffer)
                buffer, buffer_len = sentence, sentence_len
            else:
                buffer += separator + sentence
                buffer_len += len(separator) + sentence_len
            separator = " "

    if buffer:
        chunks.append(buffer)
    return chunks


def split_into_sentences(text: str) -> list[str]:
    """Split text after ".", "!" or "?" when followed by whitespace or end of text.

    Returned sentences are stripped; empty ones are omitted.
    """
    sentences: list[str] = []
    graphemes = list(_GRAPHEME.finditer(text))
    start = 0
    for idx, match in enumerate(graphemes):
        if match.group() not in _SENTENCE_TERMINATORS:
            continue
        at_end = idx + 1 == len(graphemes)
        if at_end or graphemes[idx + 1].group().isspace():
            sentence = text[start:match.end()].strip()
            if sentence:
                sentences.append(sentence)
            start = match.end()

    remaining = text[start:].strip()
    if remaining:
        sentences.append(remaining)
    return sentences
