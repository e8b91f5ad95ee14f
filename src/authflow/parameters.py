from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

GRANT_TYPE_KEY = "grant_type"
CLIENT_ID_KEY = "client_id"
REALM_KEY = "realm"
CONNECTION_KEY = "connection"
REFRESH_TOKEN_KEY = "refresh_token"
SCOPE_KEY = "scope"
AUDIENCE_KEY = "audience"
SEND_KEY = "send"


class GrantType(str, Enum):
    """Token endpoint flows supported by the API."""

    PASSWORD = "password"
    PASSWORD_REALM = "password-realm"
    MFA_OTP = "mfa-otp"
    PASSWORDLESS_OTP = "passwordless-otp"
    TOKEN_EXCHANGE = "token-exchange"
    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"


class PasswordlessType(Enum):
    """How a passwordless credential is delivered."""

    CODE = "code"
    LINK = "link"
    LINK_ANDROID = "link_android"
    LINK_IOS = "link_ios"

    @property
    def wire_value(self) -> str:
        return "code" if self is PasswordlessType.CODE else "link"


class Connection(str, Enum):
    """Default connection names for passwordless flows."""

    EMAIL = "email"
    SMS = "sms"


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class ParameterBuilder:
    """Accumulates the body of an API call.

    Every setter returns the builder so calls can be chained. Writing a key
    twice keeps the last value; writing ``None`` removes the key.
    """

    def __init__(self, parameters: Optional[Mapping[str, Any]] = None) -> None:
        self._parameters: Dict[str, Any] = {}
        if parameters is not None:
            self.add_all(parameters)

    @classmethod
    def new_builder(cls, parameters: Optional[Mapping[str, Any]] = None) -> "ParameterBuilder":
        return cls(parameters)

    def set(self, key: str, value: Any) -> "ParameterBuilder":
        if not isinstance(key, str):
            raise TypeError("key must be str")
        if value is None:
            self._parameters.pop(key, None)
        else:
            self._parameters[key] = _plain(value)
        return self

    def set_grant_type(self, grant_type: GrantType) -> "ParameterBuilder":
        if not isinstance(grant_type, GrantType):
            raise TypeError("grant_type must be GrantType")
        return self.set(GRANT_TYPE_KEY, grant_type.value)

    def set_client_id(self, client_id: str) -> "ParameterBuilder":
        return self.set(CLIENT_ID_KEY, client_id)

    def set_realm(self, realm: str) -> "ParameterBuilder":
        return self.set(REALM_KEY, realm)

    def set_connection(self, connection: str) -> "ParameterBuilder":
        return self.set(CONNECTION_KEY, connection)

    def set_refresh_token(self, refresh_token: str) -> "ParameterBuilder":
        return self.set(REFRESH_TOKEN_KEY, refresh_token)

    def set_scope(self, scope: str) -> "ParameterBuilder":
        return self.set(SCOPE_KEY, scope)

    def set_audience(self, audience: str) -> "ParameterBuilder":
        return self.set(AUDIENCE_KEY, audience)

    def set_send(self, passwordless_type: PasswordlessType) -> "ParameterBuilder":
        if not isinstance(passwordless_type, PasswordlessType):
            raise TypeError("passwordless_type must be PasswordlessType")
        return self.set(SEND_KEY, passwordless_type.wire_value)

    def add_all(self, parameters: Mapping[str, Any]) -> "ParameterBuilder":
        if not isinstance(parameters, Mapping):
            raise TypeError("parameters must be a mapping")
        for key, value in parameters.items():
            self.set(key, value)
        return self

    def clear_all(self) -> "ParameterBuilder":
        self._parameters.clear()
        return self

    def as_dict(self) -> Mapping[str, Any]:
        """Return a read-only snapshot of the accumulated parameters."""

        return MappingProxyType(dict(self._parameters))

    def __len__(self) -> int:
        return len(self._parameters)

    def __repr__(self) -> str:
        return f"ParameterBuilder(keys={list(self._parameters)!r})"


__all__ = [
    "GrantType",
    "PasswordlessType",
    "Connection",
    "ParameterBuilder",
    "GRANT_TYPE_KEY",
    "CLIENT_ID_KEY",
    "REALM_KEY",
    "CONNECTION_KEY",
    "REFRESH_TOKEN_KEY",
    "SCOPE_KEY",
    "AUDIENCE_KEY",
    "SEND_KEY",
]
