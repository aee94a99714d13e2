"""
Request and response models.

Author: exoscale-auth contributors
Date: 2026-10-18
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from exoscale_auth.auth.credentials import Credentials
from exoscale_auth.auth.exceptions import ResponseParseFailureError


class HttpMethod(str, Enum):
    """HTTP methods used by the Exoscale APIs."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class ApiFamily(str, Enum):
    """Endpoint families, each with its own authentication scheme."""
    V1 = "v1"
    V2 = "v2"
    DNS = "dns"


class RequestDescriptor(BaseModel):
    """Everything needed to build one signed request.

    Attributes:
        method: HTTP method
        path: Path relative to the API base URL, may carry a query string
        query_params: Additional query parameters (name -> value or values)
        body: Raw bytes, text, or a JSON-serializable structure
        zone: Zone selecting the v2 API host
        credentials: Explicit credentials, bypassing resolution
        headers: Extra request headers
        timeout: Transport timeout in seconds
    """

    method: HttpMethod
    path: str
    query_params: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)
    body: Optional[Any] = None
    zone: Optional[str] = None
    credentials: Optional[Credentials] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout: Optional[float] = Field(default=None, gt=0)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        """Accept methods in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Paths are relative to the API base URL."""
        if not v.startswith("/"):
            raise ValueError("path must start with '/'")
        return v

    def body_bytes(self) -> Optional[bytes]:
        """Serialize the body as it will be signed and sent."""
        if self.body is None:
            return None
        if isinstance(self.body, bytes):
            return self.body
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return json.dumps(self.body).encode("utf-8")


@dataclass(frozen=True)
class SignedRequest:
    """A request ready to be sent without further signing."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    content: Optional[bytes] = None
    timeout: Optional[float] = None


@dataclass(frozen=True)
class Decoded:
    """Successfully decoded response body."""

    value: Any
    raw: bytes

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.value


@dataclass(frozen=True)
class ParseFailure:
    """Response body that could not be decoded, with the original bytes."""

    error: Exception
    raw: bytes

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        """
        Raises:
            ResponseParseFailureError: Always, chained to the decode error
        """
        raise ResponseParseFailureError(
            f"Response body is not valid JSON: {self.error}"
        ) from self.error


DecodedBody = Union[Decoded, ParseFailure]


@dataclass(frozen=True)
class ResponseEnvelope:
    """HTTP response with its decoded body."""

    status: int
    headers: Dict[str, str]
    body: DecodedBody
