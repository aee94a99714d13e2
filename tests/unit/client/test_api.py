"""Tests for ExoscaleClient using a mocked transport."""

import json

import httpx
import pytest

from exoscale_auth.auth.credentials import CredentialResolver, Credentials
from exoscale_auth.auth.exceptions import CredentialsNotFoundError
from exoscale_auth.auth.v2 import parse_authorization_header
from exoscale_auth.client.api import ExoscaleClient
from exoscale_auth.client.models import Decoded, ParseFailure
from exoscale_auth.core.config_manager import ExoscaleConfig

CREDS = Credentials(key="EXOkey", secret="secret")


class Recorder:
    """Mock transport handler recording requests."""

    def __init__(self, status=200, content=b'{"ok": true}'):
        self.status = status
        self.content = content
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, content=self.content)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def client(recorder):
    http_client = httpx.Client(transport=httpx.MockTransport(recorder))
    return ExoscaleClient(credentials=CREDS, http_client=http_client, clock=lambda: 1610000000)


class TestV2Requests:
    """Test v2 requests end to end."""

    def test_get(self, client, recorder):
        response = client.get_v2("/v2/zone")

        request = recorder.requests[0]
        assert request.method == "GET"
        assert str(request.url) == "https://api-ch-gva-2.exoscale.com/v2/zone"
        parsed = parse_authorization_header(request.headers["Authorization"])
        assert parsed.credential == "EXOkey"
        assert parsed.expires == 1610000000
        assert response.status == 200
        assert isinstance(response.body, Decoded)
        assert response.body.value == {"ok": True}

    def test_post_with_body_and_zone(self, client, recorder):
        client.post_v2("/v2/instance", body={"name": "web"}, zone="de-fra-1")

        request = recorder.requests[0]
        assert request.url.host == "api-de-fra-1.exoscale.com"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"name": "web"}

    def test_put_and_delete(self, client, recorder):
        client.put_v2("/v2/instance/1", body="{}")
        client.delete_v2("/v2/instance/1")

        assert [r.method for r in recorder.requests] == ["PUT", "DELETE"]


class TestV1AndDnsRequests:
    """Test the other API families."""

    def test_v1_query_signature(self, client, recorder):
        client.get_v1("/compute", query_params={"command": "listZones"})

        params = recorder.requests[0].url.params
        assert params["command"] == "listZones"
        assert params["apikey"] == "EXOkey"
        assert "signature" in params

    def test_v1_helpers(self, client, recorder):
        client.post_v1("/compute", query_params={"command": "a"})
        client.put_v1("/compute", query_params={"command": "b"})
        client.delete_v1("/compute", query_params={"command": "c"})

        assert [r.method for r in recorder.requests] == ["POST", "PUT", "DELETE"]

    def test_dns_token(self, client, recorder):
        client.get_dns("/v1/domains")
        client.post_dns("/v1/domains", body={"domain": {"name": "example.com"}})
        client.put_dns("/v1/domains/1/records/2", body={})
        client.delete_dns("/v1/domains/1")

        for request in recorder.requests:
            assert request.headers["X-DNS-Token"] == "EXOkey:secret"
            assert "Authorization" not in request.headers
        assert str(recorder.requests[0].url) == "https://api.exoscale.com/dns/v1/domains"


class TestResponses:
    """Test response decoding."""

    def test_invalid_json_body_kept(self):
        recorder = Recorder(status=502, content=b"<html>Bad Gateway</html>")
        client = ExoscaleClient(
            credentials=CREDS,
            http_client=httpx.Client(transport=httpx.MockTransport(recorder)),
        )

        response = client.get_v2("/v2/zone")

        assert response.status == 502
        assert isinstance(response.body, ParseFailure)
        assert response.body.raw == b"<html>Bad Gateway</html>"

    def test_error_body_decoded(self):
        recorder = Recorder(status=403, content=b'{"message": "Invalid signature"}')
        client = ExoscaleClient(
            credentials=CREDS,
            http_client=httpx.Client(transport=httpx.MockTransport(recorder)),
        )

        response = client.get_v2("/v2/zone")

        assert response.status == 403
        assert response.body.value == {"message": "Invalid signature"}


class TestCredentials:
    """Test credential handling in the client."""

    def test_missing_credentials_abort_before_network(self, recorder):
        client = ExoscaleClient(
            resolver=CredentialResolver.from_environment(environ={}, config_paths=[]),
            http_client=httpx.Client(transport=httpx.MockTransport(recorder)),
        )

        with pytest.raises(CredentialsNotFoundError):
            client.get_v2("/v2/zone")

        assert recorder.requests == []

    def test_credentials_resolved_per_request(self, recorder):
        environ = {"EXOSCALE_API_KEY": "EXOfirst", "EXOSCALE_API_SECRET": "s"}
        client = ExoscaleClient(
            resolver=CredentialResolver.from_environment(environ=environ, config_paths=[]),
            http_client=httpx.Client(transport=httpx.MockTransport(recorder)),
        )

        client.get_dns("/v1/domains")
        environ["EXOSCALE_API_KEY"] = "EXOsecond"
        client.get_dns("/v1/domains")

        tokens = [r.headers["X-DNS-Token"] for r in recorder.requests]
        assert tokens == ["EXOfirst:s", "EXOsecond:s"]

    def test_request_credentials_override_client(self, client, recorder):
        client.get_dns("/v1/domains", credentials=Credentials(key="EXOother", secret="x"))
        assert recorder.requests[0].headers["X-DNS-Token"] == "EXOother:x"


class TestConfiguration:
    """Test configuration wiring."""

    def test_custom_endpoints(self, recorder):
        config = ExoscaleConfig(endpoints={"v2_url_template": "http://localhost:8080/{zone}", "default_zone": "test-1"})
        client = ExoscaleClient(
            config=config,
            credentials=CREDS,
            http_client=httpx.Client(transport=httpx.MockTransport(recorder)),
        )

        client.get_v2("/v2/zone")

        assert str(recorder.requests[0].url) == "http://localhost:8080/test-1/v2/zone"

    def test_owned_http_client_closed(self):
        with ExoscaleClient(credentials=CREDS) as client:
            http_client = client.http_client
        assert http_client.is_closed

    def test_injected_http_client_left_open(self, recorder):
        http_client = httpx.Client(transport=httpx.MockTransport(recorder))
        with ExoscaleClient(credentials=CREDS, http_client=http_client):
            pass
        assert not http_client.is_closed
