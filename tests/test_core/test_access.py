"""Tests for folio.core.access.LocalAccessProvider."""

import os
import sys

import pytest

from folio.core.access import AccessProvider, LocalAccessProvider
from folio.core.errors import AccessError


@pytest.fixture
def provider():
    return LocalAccessProvider()


def test_satisfies_protocol(provider):
    assert isinstance(provider, AccessProvider)


def test_grant_returns_resolved_path_token(provider, tmp_path):
    token = provider.grant_access(tmp_path / ".")
    assert token == str(tmp_path.resolve())
    assert provider.resolve_token(token) == tmp_path.resolve()


def test_grant_missing_folder(provider, tmp_path):
    with pytest.raises(AccessError, match="does not exist"):
        provider.grant_access(tmp_path / "missing")


def test_resolve_empty_token(provider):
    with pytest.raises(AccessError):
        provider.resolve_token("")


def test_resolve_stale_token(provider, tmp_path):
    folder = tmp_path / "gone"
    folder.mkdir()
    token = provider.grant_access(folder)
    folder.rmdir()
    with pytest.raises(AccessError):
        provider.resolve_token(token)


def test_scope_yields_path(provider, tmp_path):
    with provider.scope(tmp_path) as path:
        assert path == tmp_path


def test_scope_accepts_token(provider, tmp_path):
    token = provider.grant_access(tmp_path)
    with provider.scope(token) as path:
        assert path == tmp_path.resolve()


def test_scope_rejects_file(provider, tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")
    with pytest.raises(AccessError, match="not a directory"):
        with provider.scope(target):
            pass


@pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
def test_write_scope_requires_write_permission(provider, tmp_path):
    folder = tmp_path / "ro"
    folder.mkdir()
    folder.chmod(0o555)
    try:
        with provider.scope(folder):
            pass
        with pytest.raises(AccessError, match="permission denied"):
            with provider.scope(folder, write=True):
                pass
    finally:
        folder.chmod(0o755)
