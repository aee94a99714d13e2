"""
Legacy (v1) signed query string.

The API key travels as the ``apikey`` query parameter. The signature is the
base64 HMAC-SHA1 of the key-sorted, lowercased query string and is appended
as the ``signature`` query parameter.

Author: exoscale-auth contributors
Date: 2026-10-18
"""

from typing import Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from exoscale_auth.auth.digest import DigestAlgorithm, DigestBackend, compute_digest


def _query_pairs(uri: str) -> List[Tuple[str, str]]:
    return parse_qsl(urlsplit(uri).query, keep_blank_values=True)


def canonical_query_string(pairs: Iterable[Tuple[str, str]]) -> str:
    """
    Build the lowercased canonical query string.

    Parameters are stably sorted by name, so repeated parameters keep their
    relative order.

    Example:
        >>> canonical_query_string([("zone", "de-1"), ("command", "listX"), ("apikey", "K")])
        'apikey=k&command=listx&zone=de-1'
    """
    ordered = sorted(pairs, key=lambda pair: pair[0])
    query = urlencode(ordered, quote_via=quote, safe="")
    return query.lower()


def set_query_param(uri: str, name: str, value: str) -> str:
    """Return ``uri`` with ``name`` set to ``value``, replacing existing values."""
    parts = urlsplit(uri)
    pairs = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != name]
    pairs.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(pairs, quote_via=quote, safe="")))


def sign_v1(
    method: str,  # pylint: disable=unused-argument
    uri: str,
    secret: str,
    backend: Optional[DigestBackend] = None,
) -> str:
    """
    Compute the v1 signature of a URI that already carries ``apikey``.

    The HTTP method does not take part in the canonical string.

    Args:
        method: HTTP method
        uri: Request URI including the apikey parameter
        secret: API secret
        backend: Digest backend

    Returns:
        Base64-encoded HMAC-SHA1 signature
    """
    canonical = canonical_query_string(_query_pairs(uri))
    return compute_digest(secret, canonical, DigestAlgorithm.SHA1, backend)


def build_signed_uri(
    method: str,
    uri: str,
    key: str,
    secret: str,
    backend: Optional[DigestBackend] = None,
) -> str:
    """
    Add ``apikey`` and ``signature`` to a request URI.

    Returns:
        The original (non-lowercased) URI with both parameters appended
    """
    with_key = set_query_param(uri, "apikey", key)
    signature = sign_v1(method, with_key, secret, backend)
    return set_query_param(with_key, "signature", signature)
