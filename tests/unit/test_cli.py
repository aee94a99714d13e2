"""
Tests for the exoscale-auth command-line interface.
"""

import json

import httpx
import pytest
from click.testing import CliRunner

from exoscale_auth import cli as cli_module
from exoscale_auth.auth.v2 import build_auth_header
from exoscale_auth.cli import cli

ENV = {
    "EXOSCALE_API_KEY": "EXOclikey",
    "EXOSCALE_API_SECRET": "cli-secret-value",
}


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    """Keep the CLI away from real credentials and the root logger."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    for name in ("TF_VAR_exoscale_api_key", "TF_VAR_exoscale_secret_key"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cli_module, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def runner():
    return CliRunner()


class TestCredsCommand:
    """Test the creds command."""

    def test_shows_masked_secret(self, runner):
        result = runner.invoke(cli, ["creds"], env=ENV)

        assert result.exit_code == 0
        assert "EXOclikey" in result.output
        assert "cli-secret-value" not in result.output
        assert result.output.rstrip().endswith("alue")

    def test_missing_credentials(self, runner, monkeypatch):
        monkeypatch.delenv("EXOSCALE_API_KEY", raising=False)
        monkeypatch.delenv("EXOSCALE_API_SECRET", raising=False)

        result = runner.invoke(cli, ["creds"])

        assert result.exit_code == 1
        assert "credentials not found" in result.output


class TestSignCommands:
    """Test the signing commands."""

    def test_sign_v1(self, runner):
        result = runner.invoke(cli, ["sign-v1", "/compute", "-q", "command=listZones"], env=ENV)

        assert result.exit_code == 0
        url = httpx.URL(result.output.strip())
        assert url.host == "api.exoscale.com"
        assert url.params["command"] == "listZones"
        assert url.params["apikey"] == "EXOclikey"
        assert url.params["signature"]

    def test_sign_v2_with_fixed_expiry(self, runner):
        result = runner.invoke(
            cli,
            ["sign-v2", "GET", "/v2/zone", "--zone", "de-fra-1", "--expires", "1610000000"],
            env=ENV,
        )

        assert result.exit_code == 0
        url, header = result.output.strip().splitlines()
        assert url == "https://api-de-fra-1.exoscale.com/v2/zone"
        assert header == "Authorization: " + build_auth_header(
            "GET", url, None, "EXOclikey", "cli-secret-value", now=1610000000
        )

    def test_sign_v2_invalid_zone(self, runner):
        result = runner.invoke(cli, ["sign-v2", "GET", "/v2/zone", "--zone", "a/b"], env=ENV)

        assert result.exit_code == 1
        assert "Invalid zone" in result.output

    def test_bad_query_option(self, runner):
        result = runner.invoke(cli, ["sign-v1", "/compute", "-q", "novalue"], env=ENV)

        assert result.exit_code == 2


class TestRequestCommand:
    """Test the request command."""

    @pytest.fixture
    def transport(self, monkeypatch):
        """Route the CLI's httpx client through a mock transport."""
        calls = []
        responses = {}

        def handler(request):
            calls.append(request)
            status, content = responses.get("next", (200, b'{"zones": []}'))
            return httpx.Response(status, content=content)

        original = httpx.Client.__init__

        def patched_init(self, *args, **kwargs):
            kwargs["transport"] = httpx.MockTransport(handler)
            original(self, *args, **kwargs)

        monkeypatch.setattr(httpx.Client, "__init__", patched_init)
        return calls, responses

    def test_prints_json(self, runner, transport):
        calls, _ = transport

        result = runner.invoke(cli, ["request", "v2", "GET", "/v2/zone"], env=ENV)

        assert result.exit_code == 0
        assert json.loads(result.output) == {"zones": []}
        assert calls[0].headers["Authorization"].startswith("EXO2-HMAC-SHA256 credential=EXOclikey,")

    def test_prints_raw_body_on_parse_failure(self, runner, transport):
        _, responses = transport
        responses["next"] = (500, b"Internal Server Error")

        result = runner.invoke(cli, ["request", "dns", "GET", "/v1/domains"], env=ENV)

        assert result.exit_code == 1
        assert "Internal Server Error" in result.output
        assert "HTTP 500" in result.output


class TestInvalidRequestOptions:
    """Invalid methods, paths and zones are reported without a traceback."""

    @pytest.mark.parametrize(
        "args,expected",
        [
            (["request", "v2", "PATCH", "/v2/zone"], "method"),
            (["request", "v2", "GET", "/v2/zone", "--zone", "Bad.Zone"], "Invalid zone"),
            (["request", "v1", "GET", "compute"], "path"),
            (["sign-v1", "compute"], "path"),
            (["sign-v1", "/compute", "--method", "PATCH"], "method"),
        ],
    )
    def test_error_reported(self, runner, args, expected):
        result = runner.invoke(cli, args, env=ENV)

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "[ERROR]" in result.output
        assert expected in result.output
