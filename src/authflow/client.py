from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .chain import RequestChain, StepUpdate, headers_update
from .config import Account
from .exceptions import ResponseParseError
from .parameters import Connection, GrantType, ParameterBuilder, PasswordlessType
from .request import AuthenticationRequest, Request
from .structures import Authentication, Credentials, DatabaseUser, UserProfile, json_web_keys_from_payload
from .transport import Transport
from .utils import bearer

USERNAME_KEY = "username"
PASSWORD_KEY = "password"
EMAIL_KEY = "email"
PHONE_NUMBER_KEY = "phone_number"
OAUTH_CODE_KEY = "code"
CODE_VERIFIER_KEY = "code_verifier"
REDIRECT_URI_KEY = "redirect_uri"
TOKEN_KEY = "token"
MFA_TOKEN_KEY = "mfa_token"
ONE_TIME_PASSWORD_KEY = "otp"
SUBJECT_TOKEN_KEY = "subject_token"
SUBJECT_TOKEN_TYPE_KEY = "subject_token_type"

TOKEN_PATH = "oauth/token"
REVOKE_PATH = "oauth/revoke"
SIGN_UP_PATH = "dbconnections/signup"
CHANGE_PASSWORD_PATH = "dbconnections/change_password"
PASSWORDLESS_START_PATH = "passwordless/start"
USER_INFO_PATH = "userinfo"
JWKS_PATH = ".well-known/jwks.json"

HEADER_AUTHORIZATION = "Authorization"


def _authorize_with(credentials: Credentials) -> StepUpdate:
    if not credentials.access_token:
        raise ResponseParseError("Credentials do not include an access token.")
    return headers_update({HEADER_AUTHORIZATION: bearer(credentials.access_token)})


def _authentication(values: List[Any]) -> Authentication:
    return Authentication(credentials=values[0], profile=values[1])


@dataclass
class AuthenticationAPIClient:
    """Builds requests against the authentication API.

    Every method returns an unstarted request (or chain). Callers may add
    parameters or headers and then run it with ``execute()``,
    ``execute_async()`` or ``start()``.
    """

    account: Account
    transport: Optional[Transport] = None
    executor: Optional[Executor] = None

    def __post_init__(self) -> None:
        if self.transport is None:
            self.transport = Transport(self.account)

    @property
    def client_id(self) -> str:
        return self.account.client_id

    @property
    def base_url(self) -> str:
        return self.account.base_url

    def set_user_agent(self, user_agent: str) -> None:
        self.transport.set_user_agent(user_agent)

    def _request(self, method: str, path: str, decoder: Any = None) -> Request[Any]:
        return Request(method, self.account.url(path), self.transport, decoder, executor=self.executor)

    def _login_with_token(self, parameters: Mapping[str, Any]) -> AuthenticationRequest:
        request_parameters = ParameterBuilder.new_builder().set_client_id(self.client_id).add_all(parameters).as_dict()
        request = AuthenticationRequest(self.account.url(TOKEN_PATH), self.transport, executor=self.executor)
        return request.add_authentication_parameters(request_parameters)

    def login(
        self, username_or_email: str, password: str, realm_or_connection: Optional[str] = None
    ) -> AuthenticationRequest:
        """Log in with username/email and password.

        With a realm the password-realm grant is used, otherwise the plain
        password grant against the tenant's default directory.
        """

        builder = ParameterBuilder.new_builder().set(USERNAME_KEY, username_or_email).set(PASSWORD_KEY, password)
        if realm_or_connection is None:
            builder.set_grant_type(GrantType.PASSWORD)
        else:
            builder.set_grant_type(GrantType.PASSWORD_REALM).set_realm(realm_or_connection)
        return self._login_with_token(builder.as_dict())

    def login_with_otp(self, mfa_token: str, otp: str) -> AuthenticationRequest:
        """Complete a multi-factor login with the code from the authenticator."""

        parameters = (
            ParameterBuilder.new_builder()
            .set_grant_type(GrantType.MFA_OTP)
            .set(MFA_TOKEN_KEY, mfa_token)
            .set(ONE_TIME_PASSWORD_KEY, otp)
            .as_dict()
        )
        return self._login_with_token(parameters)

    def login_with_native_social_token(self, token: str, token_type: str) -> AuthenticationRequest:
        parameters = (
            ParameterBuilder.new_builder()
            .set_grant_type(GrantType.TOKEN_EXCHANGE)
            .set(SUBJECT_TOKEN_KEY, token)
            .set(SUBJECT_TOKEN_TYPE_KEY, token_type)
            .as_dict()
        )
        return self._login_with_token(parameters)

    def _login_with_passwordless_otp(self, username: str, code: str, realm: str) -> AuthenticationRequest:
        parameters = (
            ParameterBuilder.new_builder()
            .set(USERNAME_KEY, username)
            .set_grant_type(GrantType.PASSWORDLESS_OTP)
            .set(ONE_TIME_PASSWORD_KEY, code)
            .set_realm(realm)
            .as_dict()
        )
        return self._login_with_token(parameters)

    def login_with_phone_number(
        self, phone_number: str, verification_code: str, realm_or_connection: str = Connection.SMS.value
    ) -> AuthenticationRequest:
        return self._login_with_passwordless_otp(phone_number, verification_code, realm_or_connection)

    def login_with_email(
        self, email: str, verification_code: str, realm_or_connection: str = Connection.EMAIL.value
    ) -> AuthenticationRequest:
        return self._login_with_passwordless_otp(email, verification_code, realm_or_connection)

    def user_info(self, access_token: str) -> Request[UserProfile]:
        return self._profile_request().add_header(HEADER_AUTHORIZATION, bearer(access_token))

    def create_user(
        self, email: str, password: str, connection: str, username: Optional[str] = None
    ) -> Request[DatabaseUser]:
        parameters = (
            ParameterBuilder.new_builder()
            .set(USERNAME_KEY, username)
            .set(EMAIL_KEY, email)
            .set(PASSWORD_KEY, password)
            .set_connection(connection)
            .set_client_id(self.client_id)
            .as_dict()
        )
        return self._request("POST", SIGN_UP_PATH, DatabaseUser.from_payload).add_parameters(parameters)

    def sign_up(
        self, email: str, password: str, connection: str, username: Optional[str] = None
    ) -> RequestChain[Credentials]:
        """Create a database user, then log in with the same credentials.

        The chain resolves to the login's credentials. If the login fails the
        user created by the first step is kept; nothing is rolled back.
        Use ``add_parameters(..., step=1)`` to configure the login step.
        """

        create_user = self.create_user(email, password, connection, username)
        login = self.login(email, password, connection)
        return RequestChain(create_user, executor=self.executor).then(login)

    def reset_password(self, email: str, connection: str) -> Request[None]:
        parameters = (
            ParameterBuilder.new_builder()
            .set(EMAIL_KEY, email)
            .set_client_id(self.client_id)
            .set_connection(connection)
            .as_dict()
        )
        return self._request("POST", CHANGE_PASSWORD_PATH).add_parameters(parameters)

    def revoke_token(self, refresh_token: str) -> Request[None]:
        parameters = (
            ParameterBuilder.new_builder().set_client_id(self.client_id).set(TOKEN_KEY, refresh_token).as_dict()
        )
        return self._request("POST", REVOKE_PATH).add_parameters(parameters)

    def renew_auth(self, refresh_token: str) -> Request[Credentials]:
        parameters = (
            ParameterBuilder.new_builder()
            .set_client_id(self.client_id)
            .set_refresh_token(refresh_token)
            .set_grant_type(GrantType.REFRESH_TOKEN)
            .as_dict()
        )
        return self._request("POST", TOKEN_PATH, Credentials.from_payload).add_parameters(parameters)

    def passwordless_with_email(
        self,
        email: str,
        passwordless_type: PasswordlessType,
        connection: str = Connection.EMAIL.value,
    ) -> Request[None]:
        """Send a one-time code or magic link to ``email``."""

        parameters = (
            ParameterBuilder.new_builder()
            .set(EMAIL_KEY, email)
            .set_send(passwordless_type)
            .set_connection(connection)
            .as_dict()
        )
        return self._passwordless().add_parameters(parameters)

    def passwordless_with_sms(
        self,
        phone_number: str,
        passwordless_type: PasswordlessType,
        connection: str = Connection.SMS.value,
    ) -> Request[None]:
        """Send a one-time code or magic link to ``phone_number``."""

        parameters = (
            ParameterBuilder.new_builder()
            .set(PHONE_NUMBER_KEY, phone_number)
            .set_send(passwordless_type)
            .set_connection(connection)
            .as_dict()
        )
        return self._passwordless().add_parameters(parameters)

    def _passwordless(self) -> Request[None]:
        parameters = ParameterBuilder.new_builder().set_client_id(self.client_id).as_dict()
        return self._request("POST", PASSWORDLESS_START_PATH).add_parameters(parameters)

    def get_profile_after(self, authentication_request: Request[Credentials]) -> RequestChain[Authentication]:
        """Run ``authentication_request``, then fetch the profile with its access token."""

        return RequestChain(authentication_request, result=_authentication, executor=self.executor).then(
            self._profile_request(), _authorize_with
        )

    def token(self, authorization_code: str, code_verifier: str, redirect_uri: str) -> Request[Credentials]:
        """Exchange an authorization code obtained with PKCE for credentials."""

        parameters = (
            ParameterBuilder.new_builder()
            .set_client_id(self.client_id)
            .set_grant_type(GrantType.AUTHORIZATION_CODE)
            .set(OAUTH_CODE_KEY, authorization_code)
            .set(REDIRECT_URI_KEY, redirect_uri)
            .set(CODE_VERIFIER_KEY, code_verifier)
            .as_dict()
        )
        return self._request("POST", TOKEN_PATH, Credentials.from_payload).add_parameters(parameters)

    def fetch_json_web_keys(self) -> Request[Dict[str, Dict[str, Any]]]:
        return self._request("GET", JWKS_PATH, json_web_keys_from_payload)

    def _profile_request(self) -> Request[UserProfile]:
        return self._request("GET", USER_INFO_PATH, UserProfile.from_payload)


__all__ = ["AuthenticationAPIClient"]
