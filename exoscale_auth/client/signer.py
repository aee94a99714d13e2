"""
Request preparation: turns a RequestDescriptor into a SignedRequest.

Author: exoscale-auth contributors
Date: 2026-10-18
"""

import logging
import time
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from exoscale_auth.auth.credentials import CredentialResolver, Credentials
from exoscale_auth.auth.digest import DigestBackend
from exoscale_auth.auth.token import DNS_TOKEN_HEADER, build_token_header
from exoscale_auth.auth.v1 import build_signed_uri
from exoscale_auth.auth.v2 import sign_v2
from exoscale_auth.client.endpoints import Endpoints
from exoscale_auth.client.models import ApiFamily, RequestDescriptor, SignedRequest

logger = logging.getLogger(__name__)


def build_url(base_url: str, descriptor: RequestDescriptor) -> str:
    """Append the descriptor's path and query parameters to a base URL."""
    parts = urlsplit(base_url.rstrip("/") + descriptor.path)
    pairs: List[Tuple[str, str]] = parse_qsl(parts.query, keep_blank_values=True)
    for name, value in descriptor.query_params.items():
        values = [value] if isinstance(value, str) else value
        pairs.extend((name, v) for v in values)
    query = urlencode(pairs, quote_via=quote, safe="")
    return urlunsplit(parts._replace(query=query))


class RequestSigner:
    """
    Signs requests for each API family.

    Signing is side-effect free apart from credential resolution, which is
    delegated to the injected resolver.
    """

    def __init__(
        self,
        resolver: Optional[CredentialResolver] = None,
        endpoints: Optional[Endpoints] = None,
        backend: Optional[DigestBackend] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.resolver = resolver
        self.endpoints = endpoints or Endpoints()
        self.backend = backend
        self.clock = clock

    def credentials_for(
        self,
        descriptor: RequestDescriptor,
        fallback: Optional[Credentials] = None,
    ) -> Credentials:
        """Explicit descriptor credentials, then ``fallback``, then the resolver."""
        explicit = descriptor.credentials or fallback
        if explicit is not None:
            return explicit
        resolver = self.resolver or CredentialResolver.from_environment()
        return resolver.resolve()

    def prepare(
        self,
        api: ApiFamily,
        descriptor: RequestDescriptor,
        credentials: Optional[Credentials] = None,
    ) -> SignedRequest:
        """
        Build a signed request.

        Args:
            api: API family selecting the authentication scheme
            descriptor: Request to sign
            credentials: Credentials used when the descriptor carries none

        Returns:
            SignedRequest

        Raises:
            CredentialsNotFoundError: If no credentials could be resolved
            SigningFailureError: If the digest could not be computed
        """
        api = ApiFamily(api)
        creds = self.credentials_for(descriptor, credentials)
        method = descriptor.method.value
        url = build_url(self.endpoints.base_url(api, descriptor.zone), descriptor)
        content = descriptor.body_bytes()
        headers: Dict[str, str] = dict(descriptor.headers)

        if api == ApiFamily.V1:
            url = build_signed_uri(method, url, creds.key, creds.secret, self.backend)
        elif api == ApiFamily.V2:
            signature = sign_v2(
                method,
                url,
                content,
                creds.key,
                creds.secret,
                now=int(self.clock()),
                backend=self.backend,
            )
            headers["Authorization"] = signature.header
        else:
            headers[DNS_TOKEN_HEADER] = build_token_header(creds.key, creds.secret)

        if content is not None and api != ApiFamily.V1:
            headers.setdefault("Content-Type", "application/json")

        logger.debug(f"Prepared {api.value} request: {method} {urlsplit(url).path}")
        return SignedRequest(
            method=method,
            url=url,
            headers=headers,
            content=content,
            timeout=descriptor.timeout,
        )
