"""
Keyed digest primitives shared by every request signer.

Two interchangeable backends are provided:
- HmacDigestBackend: in-process HMAC via the standard library (default)
- OpenSSLDigestBackend: shells out to ``openssl dgst -mac HMAC`` once per call

Author: exoscale-auth contributors
Date: 2026-10-18
"""

import base64
import hashlib
import hmac
import logging
import subprocess
from enum import Enum
from typing import Optional, Protocol, Union

from exoscale_auth.auth.exceptions import SigningFailureError

logger = logging.getLogger(__name__)


class DigestAlgorithm(str, Enum):
    """Hash functions supported by the signers."""
    SHA1 = "sha1"
    SHA256 = "sha256"


class DigestBackend(Protocol):
    """Computes a raw keyed MAC over a message."""

    def digest(self, key: bytes, message: bytes, algorithm: DigestAlgorithm) -> bytes:
        ...


class HmacDigestBackend:
    """HMAC computed with the standard library."""

    _HASHES = {
        DigestAlgorithm.SHA1: hashlib.sha1,
        DigestAlgorithm.SHA256: hashlib.sha256,
    }

    def digest(self, key: bytes, message: bytes, algorithm: DigestAlgorithm) -> bytes:
        try:
            digestmod = self._HASHES[DigestAlgorithm(algorithm)]
        except (KeyError, ValueError) as exc:
            raise SigningFailureError(f"Unsupported digest algorithm: {algorithm}") from exc
        return hmac.new(key, message, digestmod).digest()


class OpenSSLDigestBackend:
    """
    HMAC computed by the ``openssl`` command-line tool.

    A fresh process is spawned for every call, so instances hold no state
    and can be shared between threads.
    """

    def __init__(self, binary: str = "openssl"):
        self.binary = binary

    def digest(self, key: bytes, message: bytes, algorithm: DigestAlgorithm) -> bytes:
        algorithm = DigestAlgorithm(algorithm)
        command = [
            self.binary,
            "dgst",
            f"-{algorithm.value}",
            "-mac",
            "HMAC",
            "-macopt",
            f"hexkey:{key.hex()}",
            "-binary",
        ]
        try:
            result = subprocess.run(
                command,
                input=message,
                capture_output=True,
                check=False,
            )
        except (OSError, ValueError) as exc:
            raise SigningFailureError(
                f"Unable to run '{self.binary}' to compute {algorithm.value} HMAC: {exc}"
            ) from exc

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise SigningFailureError(
                f"'{self.binary} dgst' exited with status {result.returncode}: {stderr}"
            )

        return result.stdout


_default_backend = HmacDigestBackend()


def _to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def compute_digest(
    key: Union[str, bytes],
    message: Union[str, bytes],
    algorithm: DigestAlgorithm,
    backend: Optional[DigestBackend] = None,
) -> str:
    """
    Compute a base64-encoded keyed digest.

    Args:
        key: Secret key (str values are UTF-8 encoded)
        message: Payload to authenticate (str values are UTF-8 encoded)
        algorithm: SHA1 or SHA256
        backend: Digest backend (default: in-process HMAC)

    Returns:
        Base64-encoded MAC

    Raises:
        SigningFailureError: If the backend could not compute the digest
    """
    backend = backend or _default_backend
    raw = backend.digest(_to_bytes(key), _to_bytes(message), algorithm)
    return base64.b64encode(raw).decode("ascii")


def create_backend(name: str = "native", openssl_binary: str = "openssl") -> DigestBackend:
    """Build a digest backend from its configuration name."""
    if name == "native":
        return HmacDigestBackend()
    if name == "openssl":
        logger.debug(f"Using openssl digest backend: {openssl_binary}")
        return OpenSSLDigestBackend(binary=openssl_binary)
    raise ValueError(f"Unknown signing backend: {name}")
