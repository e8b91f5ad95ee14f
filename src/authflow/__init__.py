from __future__ import annotations

from .chain import ChainFuture, ChainState, RequestChain, StepUpdate
from .client import AuthenticationAPIClient
from .config import Account
from .exceptions import (
    APIError,
    AsyncClientUnavailableError,
    AuthenticationError,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    RequestAlreadyStartedError,
    RequestTimeoutError,
    ResponseParseError,
    ServerError,
    TransportError,
    UnauthorizedError,
)
from .parameters import Connection, GrantType, ParameterBuilder, PasswordlessType
from .request import AuthenticationRequest, Request
from .structures import Authentication, Credentials, DatabaseUser, UserProfile
from .transport import Transport, httpx, requests

__all__ = [
    "AuthenticationAPIClient",
    "Account",
    "Transport",
    "Request",
    "AuthenticationRequest",
    "RequestChain",
    "ChainFuture",
    "StepUpdate",
    "ChainState",
    "ParameterBuilder",
    "GrantType",
    "PasswordlessType",
    "Connection",
    "Credentials",
    "DatabaseUser",
    "UserProfile",
    "Authentication",
    "httpx",
    "requests",
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
]
