"""
exoscale-auth Authentication Module.

Credential resolution and request signing for the Exoscale API families:
legacy signed query strings (v1), EXO2-HMAC-SHA256 headers (v2) and DNS
tokens.

Author: exoscale-auth contributors
Date: 2026-10-18
"""

from exoscale_auth.auth.exceptions import (
    ExoscaleAuthError,
    CredentialsNotFoundError,
    SigningFailureError,
    ResponseParseFailureError,
    InvalidAuthorizationHeaderError,
    SignatureMismatchError,
    SignatureExpiredError,
)
from exoscale_auth.auth.credentials import (
    Credentials,
    CredentialResolver,
    ConfigFileSource,
    EnvironmentSource,
    default_config_paths,
)
from exoscale_auth.auth.digest import (
    DigestAlgorithm,
    DigestBackend,
    HmacDigestBackend,
    OpenSSLDigestBackend,
    compute_digest,
    create_backend,
)
from exoscale_auth.auth.v1 import (
    build_signed_uri,
    canonical_query_string,
    sign_v1,
)
from exoscale_auth.auth.v2 import (
    V2Signature,
    ParsedAuthorization,
    build_auth_header,
    build_canonical_message,
    parse_authorization_header,
    sign_v2,
)
from exoscale_auth.auth.token import DNS_TOKEN_HEADER, build_token_header
from exoscale_auth.auth.verifier import V2Authenticator

__all__ = [
    # Exceptions
    "ExoscaleAuthError",
    "CredentialsNotFoundError",
    "SigningFailureError",
    "ResponseParseFailureError",
    "InvalidAuthorizationHeaderError",
    "SignatureMismatchError",
    "SignatureExpiredError",
    # Credentials
    "Credentials",
    "CredentialResolver",
    "ConfigFileSource",
    "EnvironmentSource",
    "default_config_paths",
    # Digest
    "DigestAlgorithm",
    "DigestBackend",
    "HmacDigestBackend",
    "OpenSSLDigestBackend",
    "compute_digest",
    "create_backend",
    # v1
    "build_signed_uri",
    "canonical_query_string",
    "sign_v1",
    # v2
    "V2Signature",
    "ParsedAuthorization",
    "build_auth_header",
    "build_canonical_message",
    "parse_authorization_header",
    "sign_v2",
    # DNS token
    "DNS_TOKEN_HEADER",
    "build_token_header",
    # Verification
    "V2Authenticator",
]
