"""Plain token authentication used by the DNS API."""

DNS_TOKEN_HEADER = "X-DNS-Token"


def build_token_header(key: str, secret: str) -> str:
    """Return the ``X-DNS-Token`` value: the key and secret joined by a colon."""
    return f"{key}:{secret}"
