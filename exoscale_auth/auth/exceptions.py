"""
Authentication exceptions for exoscale-auth.

Author: exoscale-auth contributors
Date: 2026-10-18
"""

from typing import Iterable, Tuple


class ExoscaleAuthError(Exception):
    """Base exception for request authentication errors."""

    def __init__(self, message: str, error_code: str = "AuthenticationFailed"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class CredentialsNotFoundError(ExoscaleAuthError):
    """Raised when no usable (key, secret) pair could be resolved."""

    def __init__(
        self,
        missing: Iterable[str],
        tried_files: Iterable[str] = (),
        tried_env_vars: Iterable[str] = (),
    ):
        self.missing: Tuple[str, ...] = tuple(missing)
        self.tried_files: Tuple[str, ...] = tuple(tried_files)
        self.tried_env_vars: Tuple[str, ...] = tuple(tried_env_vars)
        message = (
            f"Exoscale API credentials not found (missing: {', '.join(self.missing)}). "
            f"Tried files: {', '.join(self.tried_files) or 'none'}; "
            f"tried environment variables: {', '.join(self.tried_env_vars) or 'none'}"
        )
        super().__init__(message, "CredentialsNotFound")


class SigningFailureError(ExoscaleAuthError):
    """Raised when the keyed digest computation could not complete."""

    def __init__(self, message: str = "Failed to compute request signature"):
        super().__init__(message, "SigningFailure")


class ResponseParseFailureError(ExoscaleAuthError):
    """Raised when a caller unwraps a response body that failed to decode."""

    def __init__(self, message: str = "Response body is not valid JSON"):
        super().__init__(message, "ResponseParseFailure")


class InvalidAuthorizationHeaderError(ExoscaleAuthError):
    """Raised when an Authorization header is malformed."""

    def __init__(self, message: str = "Invalid Authorization header format"):
        super().__init__(message, "InvalidAuthorizationHeader")


class SignatureMismatchError(ExoscaleAuthError):
    """Raised when computed signature doesn't match provided signature."""

    def __init__(self, message: str = "Signature mismatch"):
        super().__init__(message)


class SignatureExpiredError(ExoscaleAuthError):
    """Raised when the signed expiry timestamp is outside the allowed window."""

    def __init__(self, message: str = "Request signature has expired"):
        super().__init__(message, "SignatureExpired")
