"""
EXO2-HMAC-SHA256 request signing (v2 API).

The canonical message is five newline-separated lines:

    <METHOD> <path>
    <body>
    <query values concatenated in key order>
    <empty>
    <expires>

and the resulting Authorization header has the shape:

    EXO2-HMAC-SHA256 credential=<key>[,signed-query-args=<a;b>],expires=<ts>,signature=<b64>

Author: exoscale-auth contributors
Date: 2026-10-18
"""

import time
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl, urlsplit

from exoscale_auth.auth.digest import DigestAlgorithm, DigestBackend, compute_digest
from exoscale_auth.auth.exceptions import InvalidAuthorizationHeaderError

AUTH_SCHEME = "EXO2-HMAC-SHA256"

QueryParams = Mapping[str, Union[str, Sequence[str]]]


@dataclass(frozen=True)
class V2Signature:
    """All artifacts of one v2 signing call."""

    credential: str
    signed_query_args: Tuple[str, ...]
    expires: int
    canonical_message: bytes
    signature: str

    @property
    def header(self) -> str:
        """Authorization header value."""
        parts = [f"{AUTH_SCHEME} credential={self.credential}"]
        if self.signed_query_args:
            parts.append(f"signed-query-args={';'.join(self.signed_query_args)}")
        parts.append(f"expires={self.expires}")
        parts.append(f"signature={self.signature}")
        return ",".join(parts)


@dataclass(frozen=True)
class ParsedAuthorization:
    """Fields of a parsed EXO2-HMAC-SHA256 Authorization header."""

    credential: str
    signed_query_args: Tuple[str, ...]
    expires: int
    signature: str


def sorted_query_params(query: Union[str, QueryParams]) -> Dict[str, List[str]]:
    """
    Group query parameters by name, ordered by name.

    Args:
        query: Raw query string or mapping of name -> value(s)

    Returns:
        Dict of name -> values, values kept in their original order
    """
    grouped: Dict[str, List[str]] = {}
    if isinstance(query, str):
        for name, value in parse_qsl(query, keep_blank_values=True):
            grouped.setdefault(name, []).append(value)
    else:
        for name, value in query.items():
            values = [value] if isinstance(value, str) else list(value)
            grouped.setdefault(name, []).extend(values)
    return {name: grouped[name] for name in sorted(grouped)}


def _body_bytes(body: Union[None, str, bytes]) -> bytes:
    if body is None:
        return b""
    if isinstance(body, bytes):
        return body
    return body.encode("utf-8")


def build_canonical_message(
    method: str,
    path: str,
    body: Union[None, str, bytes],
    query_params: Mapping[str, Sequence[str]],
    expires: int,
) -> bytes:
    """
    Build the byte sequence covered by the v2 signature.

    Args:
        method: HTTP method
        path: URI path, without host or query string
        body: Request body exactly as sent (empty if None)
        query_params: Name -> values, already sorted by name
        expires: Unix timestamp in seconds

    Returns:
        Canonical message bytes
    """
    values = "".join(value for name in query_params for value in query_params[name])
    lines = [
        f"{method.upper()} {path}".encode("utf-8"),
        _body_bytes(body),
        values.encode("utf-8"),
        b"",
        str(expires).encode("ascii"),
    ]
    return b"\n".join(lines)


def sign_v2(
    method: str,
    uri: str,
    body: Union[None, str, bytes],
    key: str,
    secret: str,
    now: Optional[int] = None,
    backend: Optional[DigestBackend] = None,
) -> V2Signature:
    """
    Sign a v2 API request.

    Args:
        method: HTTP method
        uri: Request URI (path and query string are used)
        body: Request body as it will be sent
        key: API key
        secret: API secret
        now: Unix timestamp in seconds (default: current time, read once)
        backend: Digest backend

    Returns:
        V2Signature with the canonical message and header
    """
    expires = int(time.time()) if now is None else int(now)
    parts = urlsplit(uri)
    params = sorted_query_params(parts.query)
    message = build_canonical_message(method, parts.path or "/", body, params, expires)
    signature = compute_digest(secret, message, DigestAlgorithm.SHA256, backend)
    return V2Signature(
        credential=key,
        signed_query_args=tuple(params),
        expires=expires,
        canonical_message=message,
        signature=signature,
    )


def build_auth_header(
    method: str,
    uri: str,
    body: Union[None, str, bytes],
    key: str,
    secret: str,
    now: Optional[int] = None,
    backend: Optional[DigestBackend] = None,
) -> str:
    """Return the EXO2-HMAC-SHA256 Authorization header value for a request."""
    return sign_v2(method, uri, body, key, secret, now=now, backend=backend).header


def parse_authorization_header(auth_header: str) -> ParsedAuthorization:
    """
    Parse an EXO2-HMAC-SHA256 Authorization header.

    Args:
        auth_header: Authorization header value

    Returns:
        ParsedAuthorization

    Raises:
        InvalidAuthorizationHeaderError: If header is malformed
    """
    parts = auth_header.strip().split(maxsplit=1)
    if len(parts) != 2:
        raise InvalidAuthorizationHeaderError(
            f"Authorization header must be in format: {AUTH_SCHEME} credential=...,expires=...,signature=..."
        )

    scheme, params = parts
    if scheme != AUTH_SCHEME:
        raise InvalidAuthorizationHeaderError(f"Expected {AUTH_SCHEME} scheme, got: {scheme}")

    fields: Dict[str, str] = {}
    for item in params.split(","):
        if "=" not in item:
            raise InvalidAuthorizationHeaderError(f"Malformed Authorization parameter: {item}")
        name, value = item.split("=", 1)
        fields[name.strip()] = value.strip()

    for required in ("credential", "expires", "signature"):
        if not fields.get(required):
            raise InvalidAuthorizationHeaderError(f"Missing Authorization parameter: {required}")

    try:
        expires = int(fields["expires"])
    except ValueError as exc:
        raise InvalidAuthorizationHeaderError(
            f"Invalid expires value: {fields['expires']}"
        ) from exc

    signed_args = fields.get("signed-query-args")
    return ParsedAuthorization(
        credential=fields["credential"],
        signed_query_args=tuple(signed_args.split(";")) if signed_args else (),
        expires=expires,
        signature=fields["signature"],
    )
