"""
HTTP client for the Exoscale API families.

Resolves credentials, signs each request for its API family, sends it
through httpx and decodes the JSON response body.

Example:
    with ExoscaleClient() as client:
        zones = client.get_v2("/v2/zone")
        vms = client.get_v1("/compute", query_params={"command": "listVirtualMachines"})

Author: exoscale-auth contributors
Date: 2026-10-18
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

import httpx

from exoscale_auth.auth.credentials import CredentialResolver, Credentials
from exoscale_auth.auth.digest import DigestBackend, create_backend
from exoscale_auth.client.decoder import decode_body
from exoscale_auth.client.models import (
    ApiFamily,
    HttpMethod,
    RequestDescriptor,
    ResponseEnvelope,
    SignedRequest,
)
from exoscale_auth.client.signer import RequestSigner
from exoscale_auth.core.config_manager import ExoscaleConfig
from exoscale_auth.core.logging_config import log_with_context

logger = logging.getLogger(__name__)


class ExoscaleClient:
    """
    Signed-request client for the v1, v2 and DNS APIs.

    Credentials are resolved again for every request unless given to the
    client or to the request itself.
    """

    def __init__(
        self,
        config: Optional[ExoscaleConfig] = None,
        credentials: Optional[Credentials] = None,
        resolver: Optional[CredentialResolver] = None,
        http_client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.time,
        backend: Optional[DigestBackend] = None,
    ):
        """
        Initialize client.

        Args:
            config: Client configuration (default: built-in defaults)
            credentials: Credentials used for every request
            resolver: Credential resolver (default: config files and environment)
            http_client: httpx client used to send requests
            clock: Time source for v2 signatures, in Unix seconds
            backend: Digest backend (default: from config)
        """
        self.config = config or ExoscaleConfig()
        self.credentials = credentials

        if resolver is None:
            paths = self.config.credentials.config_paths
            resolver = CredentialResolver.from_environment(
                config_paths=[Path(p).expanduser() for p in paths] if paths else None
            )

        if backend is None:
            backend = create_backend(
                self.config.signing.backend, self.config.signing.openssl_binary
            )

        self.signer = RequestSigner(
            resolver=resolver,
            endpoints=self.config.endpoints.to_endpoints(),
            backend=backend,
            clock=clock,
        )

        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=self.config.http.timeout)

    def __enter__(self) -> "ExoscaleClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying httpx client if this client created it."""
        if self._owns_http_client:
            self.http_client.close()

    def prepare(self, api: ApiFamily, descriptor: RequestDescriptor) -> SignedRequest:
        """Sign a request without sending it."""
        return self.signer.prepare(api, descriptor, self.credentials)

    def send(self, signed: SignedRequest) -> ResponseEnvelope:
        """
        Send a signed request and decode the response.

        Args:
            signed: Request produced by prepare()

        Returns:
            ResponseEnvelope; non-JSON bodies are returned as ParseFailure

        Raises:
            httpx.HTTPError: On transport failures
        """
        kwargs: dict = {"headers": signed.headers, "content": signed.content}
        if signed.timeout is not None:
            kwargs["timeout"] = signed.timeout

        response = self.http_client.request(signed.method, signed.url, **kwargs)
        body = decode_body(response.content)

        log_with_context(
            logger,
            logging.INFO,
            f"{signed.method} {response.request.url.path} -> {response.status_code}",
            status=response.status_code,
            decoded=body.ok,
            bytes=len(response.content),
        )

        return ResponseEnvelope(
            status=response.status_code,
            headers=dict(response.headers),
            body=body,
        )

    def request(
        self,
        api: ApiFamily,
        method: HttpMethod,
        path: str,
        **options: Any,
    ) -> ResponseEnvelope:
        """
        Build, sign and send a request.

        Args:
            api: API family ("v1", "v2" or "dns")
            method: HTTP method
            path: Path relative to the API base URL
            **options: RequestDescriptor fields (query_params, body, zone,
                credentials, headers, timeout)

        Returns:
            ResponseEnvelope

        Raises:
            CredentialsNotFoundError: If no credentials could be resolved
            SigningFailureError: If the request could not be signed
            pydantic.ValidationError: If an option is unknown or invalid
        """
        descriptor = RequestDescriptor(method=method, path=path, **options)
        return self.send(self.prepare(api, descriptor))

    def get_v1(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.V1, HttpMethod.GET, path, **options)

    def post_v1(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.V1, HttpMethod.POST, path, **options)

    def put_v1(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.V1, HttpMethod.PUT, path, **options)

    def delete_v1(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.V1, HttpMethod.DELETE, path, **options)

    def get_v2(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.V2, HttpMethod.GET, path, **options)

    def post_v2(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.V2, HttpMethod.POST, path, **options)

    def put_v2(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.V2, HttpMethod.PUT, path, **options)

    def delete_v2(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.V2, HttpMethod.DELETE, path, **options)

    def get_dns(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.DNS, HttpMethod.GET, path, **options)

    def post_dns(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.DNS, HttpMethod.POST, path, **options)

    def put_dns(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.DNS, HttpMethod.PUT, path, **options)

    def delete_dns(self, path: str, **options: Any) -> ResponseEnvelope:
        return self.request(ApiFamily.DNS, HttpMethod.DELETE, path, **options)
