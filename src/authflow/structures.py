from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def _require_mapping(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise TypeError("payload must be a JSON object")
    return payload


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{key} must be str")
    return value


@dataclass(frozen=True)
class Credentials:
    """Tokens returned by the token endpoint."""

    access_token: Optional[str]
    token_type: Optional[str]
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    recovery_code: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Credentials":
        data = _require_mapping(payload)
        if data.get("access_token") is None and data.get("id_token") is None:
            raise ValueError("credentials must contain access_token or id_token")
        expires_in = data.get("expires_in")
        if expires_in is not None:
            expires_in = int(expires_in)
        return cls(
            access_token=_optional_str(data, "access_token"),
            token_type=_optional_str(data, "token_type"),
            id_token=_optional_str(data, "id_token"),
            refresh_token=_optional_str(data, "refresh_token"),
            expires_in=expires_in,
            scope=_optional_str(data, "scope"),
            recovery_code=_optional_str(data, "recovery_code"),
        )


@dataclass(frozen=True)
class DatabaseUser:
    """User created in a database connection."""

    email: str
    username: Optional[str] = None
    email_verified: bool = False

    @classmethod
    def from_payload(cls, payload: Any) -> "DatabaseUser":
        data = _require_mapping(payload)
        email = _optional_str(data, "email")
        if email is None:
            raise ValueError("database user must contain email")
        return cls(
            email=email,
            username=_optional_str(data, "username"),
            email_verified=bool(data.get("email_verified", False)),
        )


PROFILE_FIELDS = (
    "sub",
    "user_id",
    "name",
    "nickname",
    "picture",
    "email",
    "email_verified",
    "given_name",
    "family_name",
)


@dataclass(frozen=True)
class UserProfile:
    """Profile returned by the userinfo endpoint."""

    id: Optional[str]
    name: Optional[str] = None
    nickname: Optional[str] = None
    picture: Optional[str] = None
    email: Optional[str] = None
    email_verified: bool = False
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    extra_info: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "UserProfile":
        data = _require_mapping(payload)
        user_id = data.get("sub", data.get("user_id"))
        if user_id is None:
            raise ValueError("user profile must contain sub or user_id")
        return cls(
            id=str(user_id),
            name=_optional_str(data, "name"),
            nickname=_optional_str(data, "nickname"),
            picture=_optional_str(data, "picture"),
            email=_optional_str(data, "email"),
            email_verified=bool(data.get("email_verified", False)),
            given_name=_optional_str(data, "given_name"),
            family_name=_optional_str(data, "family_name"),
            extra_info={k: v for k, v in data.items() if k not in PROFILE_FIELDS},
        )


@dataclass(frozen=True)
class Authentication:
    """Credentials together with the profile fetched using them."""

    credentials: Credentials
    profile: UserProfile


def json_web_keys_from_payload(payload: Any) -> Dict[str, Dict[str, Any]]:
    """Index the keys of a JWKS document by key id."""

    data = _require_mapping(payload)
    keys = data.get("keys")
    if not isinstance(keys, list):
        raise TypeError("keys must be a list")
    result: Dict[str, Dict[str, Any]] = {}
    for key in keys:
        if isinstance(key, dict) and key.get("kid"):
            result[key["kid"]] = key
    return result


__all__ = [
    "Credentials",
    "DatabaseUser",
    "UserProfile",
    "Authentication",
    "json_web_keys_from_payload",
]
