"""Response body decoding."""

import json
import logging

from exoscale_auth.client.models import Decoded, DecodedBody, ParseFailure

logger = logging.getLogger(__name__)


def decode_body(raw: bytes) -> DecodedBody:
    """
    Decode a JSON response body without losing the original bytes.

    Malformed bodies are returned as ParseFailure instead of raising, so
    callers can still inspect API error payloads that are not JSON.

    Args:
        raw: Response body as received

    Returns:
        Decoded or ParseFailure, both carrying ``raw`` unchanged
    """
    if not raw.strip():
        return Decoded(value=None, raw=raw)

    try:
        value = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        logger.debug(f"Response body is not valid JSON ({len(raw)} bytes): {e}")
        return ParseFailure(error=e, raw=raw)

    return Decoded(value=value, raw=raw)
