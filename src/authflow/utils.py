from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any, Dict, Mapping, Optional, Type

from .exceptions import (
    EMPTY_BODY,
    NON_JSON_ERROR,
    UNKNOWN_ERROR,
    APIError,
    BadRequestError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
)

CODE_KEYS = ("error", "code", "name")
DESCRIPTION_KEYS = ("error_description", "description", "message")


def encode_json(parameters: Mapping[str, Any]) -> str:
    """Serialize request parameters into a JSON body."""

    return json.dumps(dict(parameters))


def decode_json(text: str) -> Any:
    """Parse a JSON response body; empty bodies decode to None."""

    if not text.strip():
        return None
    return json.loads(text)


def error_class_for_status(status_code: int) -> Type[APIError]:
    if status_code == HTTPStatus.BAD_REQUEST:
        return BadRequestError
    if status_code == HTTPStatus.UNAUTHORIZED:
        return UnauthorizedError
    if status_code == HTTPStatus.FORBIDDEN:
        return ForbiddenError
    if status_code == HTTPStatus.NOT_FOUND:
        return NotFoundError
    if HTTPStatus.INTERNAL_SERVER_ERROR <= status_code <= 599:
        return ServerError
    return APIError


def _first_value(payload: Dict[str, Any], keys: tuple) -> Optional[Any]:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def error_from_response(status_code: int, text: str) -> APIError:
    """Decode an error response body into the matching APIError."""

    error_class = error_class_for_status(status_code)
    if not text.strip():
        return error_class(EMPTY_BODY, "The response body was empty.", status_code, text)
    try:
        payload = json.loads(text)
    except ValueError:
        return error_class(NON_JSON_ERROR, text, status_code, text)
    if not isinstance(payload, dict):
        return error_class(NON_JSON_ERROR, text, status_code, payload)

    code = _first_value(payload, CODE_KEYS) or UNKNOWN_ERROR
    description = _first_value(payload, DESCRIPTION_KEYS)
    if description is None:
        description = f"Request failed with status {status_code}."
    elif not isinstance(description, str):
        # password strength rules come back as a nested object
        description = json.dumps(description)
    return error_class(str(code), description, status_code, payload)


def bearer(access_token: str) -> str:
    return f"Bearer {access_token}"


__all__ = [
    "encode_json",
    "decode_json",
    "error_class_for_status",
    "error_from_response",
    "bearer",
]
