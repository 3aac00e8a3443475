"""
Tests for the LocalGSM command-line interface.
"""

import base64
import json

import httpx
import pytest
from click.testing import CliRunner

from localgsm import __version__
from localgsm.cli import cli


@pytest.fixture
def runner():
    """Click test runner."""
    return CliRunner()


class _Calls(list):
    """Recorded requests plus the responses still to be served."""

    responses: list


@pytest.fixture
def calls(monkeypatch):
    """Record httpx calls and answer them from a queue of canned responses."""
    recorded = _Calls()
    responses = []

    def _fake(method):
        def _send(url, **kwargs):
            recorded.append((method, url, kwargs))
            status, body = responses.pop(0)
            return httpx.Response(status, json=body, request=httpx.Request(method, url))
        return _send

    for method in ["get", "post", "delete"]:
        monkeypatch.setattr(httpx, method, _fake(method.upper()))

    recorded.responses = responses
    return recorded


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove GSM_* variables inherited from the environment."""
    for name in ["GSM_HOST", "GSM_PORT", "GSM_STORAGE_FILE", "GSM_ENABLE_AUTH"]:
        monkeypatch.delenv(name, raising=False)


class TestBasicCommands:
    """Test version and config commands."""

    def test_version(self, runner):
        """Test the version command."""
        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_shows_defaults(self, runner):
        """Test the config command prints the resolved configuration."""
        result = runner.invoke(cli, ["config"])

        assert result.exit_code == 0
        resolved = json.loads(result.output[result.output.index("{"):])
        assert resolved["server"]["port"] == 8085


class TestSecretsCommands:
    """Test the secrets command group against a faked server."""

    def test_create(self, runner, calls):
        """Test creating a secret with labels."""
        calls.responses.append((201, {
            "name": "projects/p1/secrets/s1",
            "createTime": "2026-10-19T10:00:00Z",
        }))

        result = runner.invoke(
            cli, ["secrets", "create", "projects/p1/secrets/s1", "--label", "env=dev"]
        )

        assert result.exit_code == 0
        method, url, kwargs = calls[0]
        assert (method, url) == ("POST", "http://127.0.0.1:8085/v1/projects/p1/secrets")
        assert kwargs["json"] == {"secretId": "s1", "secret": {"labels": {"env": "dev"}}}

    def test_add_version_encodes_payload(self, runner, calls):
        """Test the value is sent base64-encoded."""
        calls.responses.append((201, {
            "name": "projects/p1/secrets/s1/versions/1",
            "checksum": {"crc32c": "0", "sha256": "0"},
        }))

        result = runner.invoke(cli, ["secrets", "add-version", "projects/p1/secrets/s1", "s3cret"])

        assert result.exit_code == 0
        _, url, kwargs = calls[0]
        assert url.endswith("/v1/projects/p1/secrets/s1:addVersion")
        assert kwargs["json"] == {"payload": {"data": base64.b64encode(b"s3cret").decode()}}

    def test_access_defaults_to_latest(self, runner, calls):
        """Test a bare secret name accesses the latest version."""
        calls.responses.append((200, {
            "name": "projects/p1/secrets/s1/versions/2",
            "payload": {"data": base64.b64encode(b"hello").decode()},
        }))

        result = runner.invoke(cli, ["secrets", "access", "projects/p1/secrets/s1"])

        assert result.exit_code == 0
        assert calls[0][1].endswith("/v1/projects/p1/secrets/s1/versions/latest:access")
        assert "hello" in result.output

    def test_list_follows_page_tokens(self, runner, calls):
        """Test listing collects every page."""
        calls.responses.extend([
            (200, {"secrets": [{"name": "projects/p1/secrets/a"}], "nextPageToken": "1"}),
            (200, {"secrets": [{"name": "projects/p1/secrets/b"}]}),
        ])

        result = runner.invoke(cli, ["secrets", "list", "p1", "--page-size", "1"])

        assert result.exit_code == 0
        assert "Found 2 secret(s)" in result.output
        assert calls[1][2]["params"] == {"pageSize": 1, "pageToken": "1"}

    def test_server_error_message(self, runner, calls):
        """Test the error envelope message is shown on failure."""
        calls.responses.append((404, {
            "error": {"code": 404, "message": "Secret [projects/p1/secrets/x] not found.",
                      "status": "NOT_FOUND"},
        }))

        result = runner.invoke(cli, ["secrets", "get", "projects/p1/secrets/x"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_invalid_name(self, runner, calls):
        """Test malformed names are rejected before any request."""
        result = runner.invoke(cli, ["secrets", "delete-version", "projects/p1/secrets/s1"])

        assert result.exit_code == 2
        assert calls == []
