from __future__ import annotations

from typing import Any, Optional

NETWORK_ERROR = "network_error"
INVALID_RESPONSE = "invalid_response"
NON_JSON_ERROR = "non_json_error"
EMPTY_BODY = "empty_body"
UNKNOWN_ERROR = "unknown_error"


class AuthenticationError(Exception):
    """Base error delivered as the failure outcome of every request."""

    def __init__(
        self,
        code: str,
        description: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        self.code = code
        self.description = description
        self.status_code = status_code
        self.payload = payload
        if status_code is None:
            super().__init__(f"{code}: {description}")
        else:
            super().__init__(f"HTTP {status_code} {code}: {description}")

    @property
    def is_network_error(self) -> bool:
        return False


class APIError(AuthenticationError):
    """A response was received and its status indicates failure."""


class BadRequestError(APIError):
    """Raised for HTTP 400."""


class UnauthorizedError(APIError):
    """Raised for HTTP 401."""


class ForbiddenError(APIError):
    """Raised for HTTP 403."""


class NotFoundError(APIError):
    """Raised for HTTP 404."""


class ServerError(APIError):
    """Raised for HTTP 5xx."""


class TransportError(AuthenticationError):
    """Raised when no response was received at all."""

    def __init__(self, description: str) -> None:
        super().__init__(NETWORK_ERROR, description)

    @property
    def is_network_error(self) -> bool:
        return True


class RequestTimeoutError(TransportError):
    """Raised when HTTP request exceeds timeout."""


class ResponseParseError(AuthenticationError):
    """Raised when a successful response does not match the expected shape."""

    def __init__(self, description: str, status_code: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(INVALID_RESPONSE, description, status_code, payload)


class RequestAlreadyStartedError(RuntimeError):
    """Raised when a request is started twice or modified after start."""


class AsyncClientUnavailableError(RuntimeError):
    """Raised when async methods are used without httpx installed."""


__all__ = [
    "AuthenticationError",
    "APIError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ServerError",
    "TransportError",
    "RequestTimeoutError",
    "ResponseParseError",
    "RequestAlreadyStartedError",
    "AsyncClientUnavailableError",
    "NETWORK_ERROR",
    "INVALID_RESPONSE",
    "NON_JSON_ERROR",
    "EMPTY_BODY",
    "UNKNOWN_ERROR",
]
