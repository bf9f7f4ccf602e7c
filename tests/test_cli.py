"""Tests for the top-level folio command."""

import json

import pytest
from click.testing import CliRunner

from folio import __version__
from folio.cli import Context, main


@pytest.fixture
def runner():
    return CliRunner()


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_groups(runner):
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    for name in ("projects", "images", "tags", "config", "domains"):
        assert name in result.output


def test_domains_json(runner, cli_env):
    result = runner.invoke(main, ["domains", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output) == [
        {"name": "Software", "projects": 4},
        {"name": "Writing", "projects": 1},
    ]


def test_domains_table(runner, cli_env):
    result = runner.invoke(main, ["domains"])
    assert result.exit_code == 0
    assert "Software" in result.output
    assert "Reserved: _archive_" in result.output


def test_root_option_overrides_env(runner, portfolio, tmp_path, monkeypatch):
    empty = tmp_path / "empty"
    empty.mkdir()
    monkeypatch.setenv("FOLIO_ROOT", str(portfolio))
    result = runner.invoke(main, ["--root", str(empty), "domains", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.output) == []


def test_missing_root(runner, tmp_path):
    result = runner.invoke(main, ["--root", str(tmp_path / "missing"), "domains"])
    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_dry_run_banner(runner, cli_env):
    result = runner.invoke(main, ["-n", "domains"])
    assert "DRY RUN MODE" in result.output


def test_context_defaults():
    ctx = Context()
    assert not ctx.verbose
    assert not ctx.dry_run
    assert ctx.state is ctx.state
    assert ctx.access is ctx.access
