"""Shared fixtures for the CLI tests."""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI commands install their own root handler; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def cli_env(monkeypatch, tmp_path, sample_db):
    """Point the CLI at the sample database, away from any developer ``.env``."""
    for name in ("SAFESQL_BACKEND_TYPE", "SAFESQL_DATABASE_URL", "SAFESQL_DEBUG", "SAFESQL_STRUCTURED_LOGGING"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SAFESQL_DATABASE_PATH", str(sample_db))
    monkeypatch.setenv("SAFESQL_SAFE_VIEWS", "safe_users_v")
    monkeypatch.setenv("SAFESQL_MAX_ROWS", "200")
    monkeypatch.chdir(tmp_path)
    return sample_db
