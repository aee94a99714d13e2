"""
Server-side validation of EXO2-HMAC-SHA256 signed requests.

Rebuilds the canonical message from the received request and compares the
signature, the way the API endpoint does. Used to exercise the signer against
a local stub of the API.

Author: exoscale-auth contributors
Date: 2026-10-18
"""

import hmac
import logging
import time
from typing import Callable, Dict, Optional, Union
from urllib.parse import urlsplit

from exoscale_auth.auth.digest import DigestAlgorithm, DigestBackend, compute_digest
from exoscale_auth.auth.exceptions import (
    ExoscaleAuthError,
    InvalidAuthorizationHeaderError,
    SignatureExpiredError,
    SignatureMismatchError,
)
from exoscale_auth.auth.v2 import (
    ParsedAuthorization,
    build_canonical_message,
    parse_authorization_header,
    sorted_query_params,
)

logger = logging.getLogger(__name__)


class V2Authenticator:
    """
    Validates EXO2-HMAC-SHA256 Authorization headers.

    The ``expires`` field must not lie further in the past than the allowed
    clock skew.
    """

    # Default clock skew tolerance (10 minutes)
    DEFAULT_CLOCK_SKEW_SECONDS = 10 * 60

    def __init__(
        self,
        credentials_store: Dict[str, str],
        clock_skew_seconds: int = DEFAULT_CLOCK_SKEW_SECONDS,
        clock: Callable[[], float] = time.time,
        backend: Optional[DigestBackend] = None,
    ):
        """
        Initialize v2 authenticator.

        Args:
            credentials_store: Map of API key -> secret
            clock_skew_seconds: Allowed clock skew tolerance in seconds
            clock: Time source returning Unix seconds
            backend: Digest backend
        """
        self.credentials_store = credentials_store
        self.clock_skew_seconds = clock_skew_seconds
        self.clock = clock
        self.backend = backend

    def authenticate(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Union[None, str, bytes] = None,
    ) -> ParsedAuthorization:
        """
        Authenticate a request signed with EXO2-HMAC-SHA256.

        Args:
            method: HTTP method
            url: Full request URL
            headers: Request headers
            body: Raw request body

        Returns:
            ParsedAuthorization if authentication succeeds

        Raises:
            InvalidAuthorizationHeaderError: If Authorization header is missing or malformed
            ExoscaleAuthError: If the API key is unknown
            SignatureExpiredError: If the expiry is outside the allowed window
            SignatureMismatchError: If signature doesn't match
        """
        headers_lower = {k.lower(): v for k, v in headers.items()}
        auth_header = headers_lower.get("authorization")
        if not auth_header:
            raise InvalidAuthorizationHeaderError("Authorization header is missing")

        parsed = parse_authorization_header(auth_header)

        secret = self.credentials_store.get(parsed.credential)
        if not secret:
            logger.warning(f"Unknown API key: {parsed.credential}")
            raise ExoscaleAuthError(f"Unknown API key '{parsed.credential}'")

        time_diff = abs(self.clock() - parsed.expires)
        if time_diff > self.clock_skew_seconds:
            raise SignatureExpiredError(
                f"Request expires timestamp is outside allowed clock skew window. "
                f"Diff: {time_diff:.0f}s, Allowed: {self.clock_skew_seconds}s"
            )

        parts = urlsplit(url)
        params = sorted_query_params(parts.query)
        if tuple(params) != parsed.signed_query_args:
            raise SignatureMismatchError(
                "Signed query arguments do not match the request query string"
            )

        message = build_canonical_message(
            method, parts.path or "/", body, params, parsed.expires
        )
        expected = compute_digest(secret, message, DigestAlgorithm.SHA256, self.backend)

        if not hmac.compare_digest(expected, parsed.signature):
            logger.warning(f"Signature mismatch for API key {parsed.credential}")
            raise SignatureMismatchError()

        logger.info(f"EXO2 authentication successful for API key: {parsed.credential}")
        return parsed
