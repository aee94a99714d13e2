"""Client module for exoscale-auth.

Request models, endpoint selection, request signing and response decoding.
The httpx-backed ExoscaleClient lives in exoscale_auth.client.api.
"""

from exoscale_auth.client.models import (
    ApiFamily,
    HttpMethod,
    RequestDescriptor,
    SignedRequest,
    ResponseEnvelope,
    Decoded,
    ParseFailure,
    DecodedBody,
)
from exoscale_auth.client.decoder import decode_body
from exoscale_auth.client.endpoints import Endpoints, DEFAULT_ZONE
from exoscale_auth.client.signer import RequestSigner, build_url

__all__ = [
    "ApiFamily",
    "HttpMethod",
    "RequestDescriptor",
    "SignedRequest",
    "ResponseEnvelope",
    "Decoded",
    "ParseFailure",
    "DecodedBody",
    "decode_body",
    "Endpoints",
    "DEFAULT_ZONE",
    "RequestSigner",
    "build_url",
]
