"""Tests for the colortouch CLI commands."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from colortouch.auth import decode_session_token
from colortouch.cli import app
from colortouch.config import settings


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def local_store_file(tmp_path, monkeypatch):
    path = tmp_path / "local.db"
    monkeypatch.setattr(settings, "local_store_url", f"sqlite+aiosqlite:///{path}")
    return path


class TestToken:
    def test_issues_valid_token(self, cli_runner):
        result = cli_runner.invoke(app, ["token", "user-1", "--email", "jane@test.com"])
        assert result.exit_code == 0
        user = decode_session_token(settings, result.stdout.strip())
        assert user is not None
        assert user.user_id == "user-1"
        assert user.email == "jane@test.com"

    def test_requires_secret(self, cli_runner, monkeypatch):
        monkeypatch.setattr(settings, "auth_secret", "")
        result = cli_runner.invoke(app, ["token", "user-1"])
        assert result.exit_code == 1
        assert "auth_secret" in result.output


class TestSyncQueue:
    def test_enqueue_then_status(self, cli_runner, local_store_file):
        result = cli_runner.invoke(app, [
            "sync", "enqueue", "CREATE", "Lead", "local-1",
            "--user", "user-1", "--data", '{"name": "Jane"}',
        ])
        assert result.exit_code == 0
        assert "Queued change #1" in result.output
        assert local_store_file.exists()

        status = cli_runner.invoke(app, ["sync", "status", "--json"])
        assert status.exit_code == 0
        payload = json.loads(status.stdout)
        assert payload["queue_count"] == 1
        assert payload["pending"]["leads"] == 1
        assert payload["lastSyncTime"] is None

    def test_status_table(self, cli_runner):
        result = cli_runner.invoke(app, ["sync", "status"])
        assert result.exit_code == 0
        assert "Leads" in result.output
        assert "Last sync: never" in result.output

    def test_enqueue_rejects_bad_json(self, cli_runner):
        result = cli_runner.invoke(app, [
            "sync", "enqueue", "CREATE", "Lead", "local-1", "--user", "user-1", "--data", "{name",
        ])
        assert result.exit_code == 1
        assert "Invalid --data JSON" in result.output

    def test_enqueue_rejects_unknown_model(self, cli_runner):
        result = cli_runner.invoke(app, [
            "sync", "enqueue", "CREATE", "Invoice", "x", "--user", "user-1",
        ])
        assert result.exit_code == 1
        assert "Invalid model" in result.output

    def test_no_conflicts(self, cli_runner):
        result = cli_runner.invoke(app, ["sync", "conflicts"])
        assert result.exit_code == 0
        assert "No conflicts" in result.output

    def test_resolve_validates_strategy(self, cli_runner):
        result = cli_runner.invoke(app, ["sync", "resolve", "1", "--keep", "both"])
        assert result.exit_code == 1
        assert "--keep must be" in result.output

    def test_resolve_unknown_entry(self, cli_runner):
        result = cli_runner.invoke(app, ["sync", "resolve", "42", "--keep", "server"])
        assert result.exit_code == 1
        assert "No conflict with entry #42" in result.output
