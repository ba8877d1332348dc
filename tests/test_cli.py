# tests/test_cli.py
"""
Tests for the timeledger command-line interface (CLI).

Scope
-----
1.  **Command Registration**: `--help` lists the commands.
2.  **Submission**: `submit` appends through the same service as the API.
3.  **Listing**: `entries` renders stored rows.
4.  **Maintenance**: `backfill-quarters` in dry-run and commit modes.
5.  **Error Handling**: store failures exit with code 1, bad config with 2.

Settings and the store are patched where `timeledger.cli` imports them, so no
environment or network is involved.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import make_settings
from PIL import Image
from typer.testing import CliRunner

from timeledger.cli import app
from timeledger.core.csv_codec import decode
from timeledger.storage.memory import InMemoryContentStore

CSV = "timeline-data.csv"


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture  # type: ignore[misc]
def store() -> Iterator[InMemoryContentStore]:
    memory = InMemoryContentStore(files={CSV: b"date,year,description,imagePath,quarter\nJan 5,2025,Old,,\n"})
    with (
        patch("timeledger.cli.load_settings", return_value=make_settings()),
        patch("timeledger.cli.build_content_store", return_value=memory),
    ):
        yield memory


def test_cli_help_shows_usage(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0, result.output
    for command in ("serve", "entries", "submit", "backfill-quarters"):
        assert command in result.output


def test_submit_text_entry(runner: CliRunner, store: InMemoryContentStore) -> None:
    result = runner.invoke(app, ["submit", "--date", "Mar 30", "--description", "From the CLI"])
    assert result.exit_code == 0, result.output
    assert "Entry submitted successfully" in result.output

    rows = list(decode(asyncio.run(store.get(CSV)).text()))
    assert rows[-1].description == "From the CLI"
    assert rows[-1].quarter != ""


def test_submit_with_image(runner: CliRunner, store: InMemoryContentStore, tmp_path: Path) -> None:
    picture = tmp_path / "photo.png"
    Image.new("RGB", (3, 3), "blue").save(picture)

    result = runner.invoke(
        app, ["submit", "-d", "Mar 30", "-t", "Picture", "--image", str(picture)]
    )
    assert result.exit_code == 0, result.output
    assert any(p.startswith("images/") and p.endswith(".webp") for p in store.paths())


def test_submit_rejects_missing_image_file(runner: CliRunner, store: InMemoryContentStore) -> None:
    result = runner.invoke(app, ["submit", "-d", "Mar 30", "-t", "x", "--image", "ghost.png"])
    assert result.exit_code != 0
    assert "does not exist" in result.output


def test_entries_lists_rows(runner: CliRunner, store: InMemoryContentStore) -> None:
    result = runner.invoke(app, ["entries"])
    assert result.exit_code == 0, result.output
    assert "Old" in result.output


def test_backfill_dry_run_then_commit(runner: CliRunner, store: InMemoryContentStore) -> None:
    dry = runner.invoke(app, ["backfill-quarters", "--dry-run"])
    assert dry.exit_code == 0, dry.output
    assert "1 row(s) would be updated" in dry.output
    assert store.commits == []

    real = runner.invoke(app, ["backfill-quarters"])
    assert real.exit_code == 0, real.output
    assert "Backfilled" in real.output
    assert asyncio.run(store.get(CSV)).text().splitlines()[1] == "Jan 5,2025,Old,,2025-Q1"


def test_store_failure_exits_with_code_1(runner: CliRunner) -> None:
    empty = InMemoryContentStore()
    with (
        patch("timeledger.cli.load_settings", return_value=make_settings()),
        patch("timeledger.cli.build_content_store", return_value=empty),
    ):
        result = runner.invoke(app, ["backfill-quarters"])
    assert result.exit_code == 1, result.output
    assert "Not_Found Error" in result.output


def test_bad_configuration_exits_with_code_2(runner: CliRunner) -> None:
    with patch("timeledger.cli.load_settings", side_effect=ValueError("live mode requires GITHUB_TOKEN")):
        result = runner.invoke(app, ["entries"])
    assert result.exit_code == 2
    assert "Configuration Error" in result.output
