"""CLI integration tests for tag commands."""

import json

import pytest
from click.testing import CliRunner

from folio.cli import main
from folio.core.state import TAGS_KEY, StateStore
from folio.tags.commands import tags


@pytest.fixture
def runner():
    return CliRunner()


def test_list_empty(runner):
    result = runner.invoke(tags, ["list"])
    assert result.exit_code == 0
    assert "No tags yet" in result.output


def test_add_then_list(runner):
    result = runner.invoke(main, ["tags", "add", "python", "cli"])
    assert result.exit_code == 0
    assert "Added 2 tag(s)" in result.output

    result = runner.invoke(main, ["tags", "list", "--json"])
    assert json.loads(result.output) == ["cli", "python"]


def test_add_known_tags(runner):
    runner.invoke(main, ["tags", "add", "python"])
    result = runner.invoke(main, ["tags", "add", "python"])
    assert "already known" in result.output


def test_add_dry_run(runner):
    result = runner.invoke(main, ["-n", "tags", "add", "python"])
    assert result.exit_code == 0
    assert StateStore().get(TAGS_KEY) is None


def test_refresh_from_root(runner, cli_env):
    result = runner.invoke(main, ["tags", "refresh"])
    assert result.exit_code == 0
    assert "Found 4 new tag(s)" in result.output
    assert StateStore().get(TAGS_KEY) == ["cli", "ml", "python", "rust"]

    result = runner.invoke(main, ["tags", "refresh"])
    assert "No new tags" in result.output


def test_refresh_scope(runner, portfolio):
    result = runner.invoke(main, ["tags", "refresh", str(portfolio / "Software" / "_IDEAS_")])
    assert result.exit_code == 0
    assert StateStore().get(TAGS_KEY) == ["ml"]


def test_refresh_missing_scope(runner, tmp_path):
    result = runner.invoke(main, ["tags", "refresh", str(tmp_path / "missing")])
    assert result.exit_code == 1
    assert "does not exist" in result.output
