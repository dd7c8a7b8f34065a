"""Render search results as text, JSON or CSV for display and export."""

import csv
import io
import json

from shared.models.document import SearchResult

CSV_HEADER = ("rank", "similarity", "source", "chunk_index", "content")
MAX_DISPLAY_CHARS = 500


def format_results_text(results: list[SearchResult], explain: bool = False) -> str:
    """Human-readable result blocks.

    Chunk numbers are shown 1-based. Content longer than 500 characters is
    truncated with a trailing "...". The similarity line appears only when
    `explain` is set.
    """
    if not results:
        return "No results found."

    lines = [f"Found {len(results)} result(s):\n\n"]
    for idx, result in enumerate(results, start=1):
        lines.append(f"=== Result {idx} ===\n")
        if explain:
            lines.append(f"Similarity: {result.similarity:.4f}\n")
        lines.append(f"Source: {result.document.source}\n")
        lines.append(f"Chunk {result.chunk.chunk_index + 1}\n\n")

        content = result.chunk.content
        if len(content) > MAX_DISPLAY_CHARS:
            content = content[:MAX_DISPLAY_CHARS] + "..."
        lines.append(f"{content}\n\n")
    return "".join(lines)


def format_results_json(results: list[SearchResult]) -> str:
    """Pretty-printed JSON array of {chunk, document, similarity} objects."""
    return json.dumps([result.model_dump(mode="json") for result in results], indent=2)


def format_results_csv(results: list[SearchResult]) -> str:
    """CSV export with a fixed header.

    Newlines in content are replaced by spaces so every result stays on one line.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for idx, result in enumerate(results, start=1):
        writer.writerow([
            idx,
            f"{result.similarity:.4f}",
            result.document.source,
            result.chunk.chunk_index + 1,
            result.chunk.content.replace("\n", " "),
        ])
    return buffer.getvalue()
