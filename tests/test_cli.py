"""Tests for the command-line interface."""

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest
import structlog
from typer.testing import CliRunner

from commitwindow.cli import _build_window, _one_month_before, app
from commitwindow.models import RepositorySummary
from commitwindow.remote.base import SourceHostClient
from commitwindow.remote.errors import AuthError

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("BITBUCKET_USERNAME", "BITBUCKET_PASSWORD", "LOG_DIR", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_client_class(repository_factory, history_factory):
    """A client class serving one repository with 40 daily commits from 2024-01-01."""
    repo = repository_factory(history_factory(40), name="billing")

    class FakeClient(SourceHostClient):
        fail_listing = False

        def __init__(self, credentials, **kwargs):
            self.credentials = credentials

        async def list_repositories(self):
            if self.fail_listing:
                raise AuthError("Authentication failed for user jdoe")
            return [
                RepositorySummary(
                    owner="acme",
                    name="billing",
                    slug="billing",
                    last_updated=datetime(2024, 2, 9, tzinfo=timezone.utc),
                ),
                RepositorySummary(
                    owner="acme",
                    name="archive",
                    slug="archive",
                    last_updated=datetime(2020, 1, 1, tzinfo=timezone.utc),
                ),
            ]

        async def get_repository(self, owner, slug):
            return repo

    return FakeClient


def test_one_month_before_clamps_day():
    assert _one_month_before(date(2024, 3, 31)) == date(2024, 2, 29)
    assert _one_month_before(date(2024, 1, 15)) == date(2023, 12, 15)


def test_build_window_defaults():
    window = _build_window(None, None, today=date(2024, 5, 20))
    assert window.since == datetime(2024, 4, 20, tzinfo=timezone.utc)
    assert window.until == datetime(2024, 5, 21, tzinfo=timezone.utc)


def test_build_window_default_includes_today():
    today = date(2024, 12, 31)
    window = _build_window(None, None, today=today)
    assert window.since <= datetime(2024, 12, 31, 23, 59, tzinfo=timezone.utc) < window.until
    assert window.until == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_build_window_explicit():
    window = _build_window("10/01/2024", "20/01/2024")
    assert window.since == datetime(2024, 1, 10, tzinfo=timezone.utc)
    assert window.until == datetime(2024, 1, 20, tzinfo=timezone.utc)


def test_report_to_console(fake_client_class):
    with patch("commitwindow.cli.BitbucketClient", fake_client_class):
        result = runner.invoke(
            app,
            ["report", "-u", "jdoe", "-p", "pw", "--since", "10/01/2024", "--until", "12/01/2024"],
        )

    assert result.exit_code == 0, result.output
    assert "=== Repo: acme/billing, Commits: 2 ===" in result.output
    assert "|11/01/2024|John Doe <john@example.com>|Commit 10|" in result.output
    assert "|10/01/2024|John Doe <john@example.com>|Commit 9|" in result.output
    assert "archive" not in result.output


def test_report_to_file(fake_client_class, tmp_path):
    output = tmp_path / "out" / "report.txt"
    with patch("commitwindow.cli.BitbucketClient", fake_client_class):
        result = runner.invoke(
            app,
            [
                "report",
                "-u", "jdoe",
                "-p", "pw",
                "--since", "10/01/2024",
                "--until", "12/01/2024",
                "--truncate", "4",
                "-o", str(output),
            ],
        )

    assert result.exit_code == 0, result.output
    lines = output.read_text().splitlines()
    assert lines[0] == "=== Repo: acme/billing, Commits: 2 ==="
    assert lines[1].endswith("|11/01/2024|John Doe <john@example.com>|Comm|")
    assert lines[1].startswith("acme|billing|default|")


def test_report_auth_error(fake_client_class):
    fake_client_class.fail_listing = True
    with patch("commitwindow.cli.BitbucketClient", fake_client_class):
        result = runner.invoke(app, ["report", "-u", "jdoe", "-p", "wrong"])

    assert result.exit_code == 1
    assert "Authentication failed" in result.output


def test_report_invalid_date():
    result = runner.invoke(app, ["report", "-u", "jdoe", "-p", "pw", "--since", "2024-01-10"])

    assert result.exit_code == 1
    assert "Invalid date" in result.output


def test_report_prompts_for_password(fake_client_class):
    with patch("commitwindow.cli.BitbucketClient", fake_client_class):
        result = runner.invoke(
            app,
            ["report", "-u", "jdoe", "--since", "10/01/2024", "--until", "11/01/2024"],
            input="pw\n",
        )

    assert result.exit_code == 0, result.output
    assert "Commits: 1" in result.output


def test_report_writes_log_file(fake_client_class, tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    with patch("commitwindow.cli.BitbucketClient", fake_client_class):
        result = runner.invoke(
            app,
            ["report", "-u", "jdoe", "-p", "pw", "--since", "10/01/2024", "--until", "11/01/2024", "--log-file", str(log_file)],
        )

    assert result.exit_code == 0, result.output
    assert "event='repositories_filtered'" in log_file.read_text()


def test_list_repos(fake_client_class):
    with patch("commitwindow.cli.BitbucketClient", fake_client_class):
        result = runner.invoke(app, ["list-repos", "-u", "jdoe", "-p", "pw", "--since", "01/01/2024"])

    assert result.exit_code == 0, result.output
    assert "billing" in result.output
    assert "archive" not in result.output
