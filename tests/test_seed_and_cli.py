import pytest
from rich.console import Console
from typer.testing import CliRunner

from client import cli
from client.api_client import RCAClient
from config.database import DatabaseConfig, DatabaseType, open_record_store
from scripts.seed_data import SAMPLE_RCAS, main as seed_main, seed_records
from services.records import RecordService

runner = CliRunner()


@pytest.mark.asyncio
async def test_seed_replaces_existing_records(tmp_path):
    config = DatabaseConfig(type=DatabaseType.SQLITE, sqlite_path=str(tmp_path / "seed.db"))
    assert await seed_main(config) == len(SAMPLE_RCAS)
    assert await seed_main(config) == len(SAMPLE_RCAS)
    assert await seed_main(config, replace=False) == len(SAMPLE_RCAS)

    store = await open_record_store(config)
    try:
        assert await store.count_records() == 2 * len(SAMPLE_RCAS)
        created = await seed_records(RecordService(store))
        assert {r["title"] for r in created} == {s["title"] for s in SAMPLE_RCAS}
        assert await store.count_records() == len(SAMPLE_RCAS)
    finally:
        await store.close()


def test_cli_seed(monkeypatch, tmp_path):
    monkeypatch.delenv("RCA_DB_TYPE", raising=False)
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    result = runner.invoke(cli.app, ["seed"])
    assert result.exit_code == 0, result.output
    assert f"Database seeded with {len(SAMPLE_RCAS)} RCAs" in result.output


def test_cli_search(monkeypatch, client, create_rca):
    create_rca()
    monkeypatch.setattr(cli, "console", Console(width=200))
    monkeypatch.setattr(cli, "RCAClient", lambda api: RCAClient(api, session=client))
    result = runner.invoke(cli.app, ["search", "timeout", "--api", "http://testserver/api"])
    assert result.exit_code == 0, result.output
    assert "Database connection timeout" in result.output


def test_cli_search_failure(monkeypatch, client):
    monkeypatch.setattr(cli, "RCAClient", lambda api: RCAClient(api, session=client))
    result = runner.invoke(cli.app, ["search", "", "--api", "http://testserver/api"])
    assert result.exit_code == 1
    assert "Search failed" in result.output
