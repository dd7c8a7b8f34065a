import os

import pytest

from cli.cli_runner import build_parser, main
from shared.models.config import AppSettings, DatabaseSettings, SearchSettings


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        database=DatabaseSettings(path=os.path.join(tmp_path, "db", "vectors.db")),
        search=SearchSettings(default_top_k=7),
    )


def test_parser_defaults_come_from_settings(settings):
    parser = build_parser(settings)

    search = parser.parse_args(["search", "hello"])
    assert search.top_k == 7
    assert search.threshold == 0.0
    assert search.format == "text"

    ingest = parser.parse_args(["ingest", "./docs", "-s", "256", "-o", "32", "--semantic", "-r"])
    assert (ingest.chunk_size, ingest.overlap, ingest.semantic, ingest.recursive) == (256, 32, True, True)
    assert ingest.model == "nomic-embed-text"

    serve = parser.parse_args(["serve", "-p", "8080"])
    assert (serve.host, serve.port) == ("127.0.0.1", 8080)


def test_parser_rejects_unknown_format(settings):
    with pytest.raises(SystemExit):
        build_parser(settings).parse_args(["search", "q", "-f", "xml"])


@pytest.mark.asyncio
async def test_stats_and_optimize_on_fresh_database(settings, capsys):
    parser = build_parser(settings)

    assert await main(parser.parse_args(["stats"]), settings) == 0
    assert "Documents:  0" in capsys.readouterr().out

    assert await main(parser.parse_args(["optimize"]), settings) == 0
    assert "Database optimization complete" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_search_on_empty_database_asks_for_ingest(settings, capsys):
    args = build_parser(settings).parse_args(["search", "anything"])

    assert await main(args, settings) == 1
    assert "vectdb ingest" in capsys.readouterr().out
