from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Tuple, TypeVar

from .exceptions import RequestAlreadyStartedError, ResponseParseError
from .parameters import GrantType, ParameterBuilder
from .structures import Credentials
from .transport import Transport, TransportResponse
from .utils import decode_json, encode_json, error_from_response

logger = logging.getLogger(__name__)

T = TypeVar("T")
Decoder = Callable[[Any], T]
DoneCallback = Callable[["Future[Any]"], None]

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def default_executor() -> Executor:
    """Worker pool shared by every request started without an explicit executor."""

    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(thread_name_prefix="authflow")
        return _executor


class Request(Generic[T]):
    """A single API call that can be configured until it is started.

    ``decoder`` turns the decoded JSON body of a 2xx response into the success
    value; ``None`` means the call has no meaningful content and resolves to
    ``None``. A request is single-use: starting it twice, or changing it after
    it started, raises :class:`RequestAlreadyStartedError`.
    """

    def __init__(
        self,
        method: str,
        url: str,
        transport: Transport,
        decoder: Optional[Decoder[T]] = None,
        *,
        executor: Optional[Executor] = None,
    ) -> None:
        if not isinstance(method, str):
            raise TypeError("method must be str")
        if not isinstance(url, str):
            raise TypeError("url must be str")
        self.method = method.upper()
        self.url = url
        self._transport = transport
        self._decoder = decoder
        self._executor = executor
        self._parameters = ParameterBuilder()
        self._headers: Dict[str, str] = {}
        self._started = False
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.method} {self.url})"

    @property
    def parameters(self) -> Mapping[str, Any]:
        return self._parameters.as_dict()

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    @property
    def started(self) -> bool:
        return self._started

    def _update(self, change: Callable[[ParameterBuilder], Any]) -> "Request[T]":
        with self._lock:
            if self._started:
                raise RequestAlreadyStartedError(f"{self!r} was already started and cannot be modified.")
            change(self._parameters)
        return self

    def add_parameter(self, key: str, value: Any) -> "Request[T]":
        return self._update(lambda builder: builder.set(key, value))

    def add_parameters(self, parameters: Mapping[str, Any]) -> "Request[T]":
        return self._update(lambda builder: builder.add_all(parameters))

    def add_header(self, name: str, value: str) -> "Request[T]":
        if not isinstance(name, str) or not isinstance(value, str):
            raise TypeError("header name and value must be str")
        with self._lock:
            if self._started:
                raise RequestAlreadyStartedError(f"{self!r} was already started and cannot be modified.")
            self._headers[name] = value
        return self

    def _begin(self) -> Tuple[Dict[str, Any], Dict[str, str]]:
        with self._lock:
            if self._started:
                raise RequestAlreadyStartedError(f"{self!r} was already started.")
            self._started = True
            return dict(self._parameters.as_dict()), dict(self._headers)

    def _call_args(self, parameters: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        args: Dict[str, Any] = {"headers": headers}
        if self.method == "GET":
            args["params"] = parameters
        else:
            args["content"] = encode_json(parameters)
        return args

    def _handle(self, response: TransportResponse) -> T:
        if not 200 <= response.status_code < 300:
            raise error_from_response(response.status_code, response.text)
        if self._decoder is None:
            return None  # type: ignore[return-value]
        try:
            return self._decoder(decode_json(response.text))
        except (TypeError, ValueError, LookupError, AttributeError) as exc:
            raise ResponseParseError(
                f"Unexpected response body for {self.method} {self.url}: {exc}",
                response.status_code,
                response.text,
            ) from exc

    def _perform(self, parameters: Dict[str, Any], headers: Dict[str, str]) -> T:
        response = self._transport.send(self.method, self.url, **self._call_args(parameters, headers))
        return self._handle(response)

    def execute(self) -> T:
        """Perform the call on the current thread and return the decoded value."""

        parameters, headers = self._begin()
        return self._perform(parameters, headers)

    async def execute_async(self) -> T:
        parameters, headers = self._begin()
        response = await self._transport.send_async(self.method, self.url, **self._call_args(parameters, headers))
        return self._handle(response)

    def start(self, callback: Optional[DoneCallback] = None) -> "Future[T]":
        """Perform the call on a worker thread.

        The returned future resolves to the decoded value or fails with the
        request's error. ``callback`` receives that future once it is done.
        """

        parameters, headers = self._begin()
        logger.debug("Starting %r in background", self)
        future = (self._executor or default_executor()).submit(self._perform, parameters, headers)
        if callback is not None:
            future.add_done_callback(callback)
        return future


class AuthenticationRequest(Request[Credentials]):
    """Request against the token endpoint resolving to :class:`Credentials`."""

    def __init__(self, url: str, transport: Transport, *, executor: Optional[Executor] = None) -> None:
        super().__init__("POST", url, transport, Credentials.from_payload, executor=executor)

    def add_authentication_parameters(self, parameters: Mapping[str, Any]) -> "AuthenticationRequest":
        self.add_parameters(parameters)
        return self

    def set_grant_type(self, grant_type: GrantType) -> "AuthenticationRequest":
        self._update(lambda builder: builder.set_grant_type(grant_type))
        return self

    def set_realm(self, realm: str) -> "AuthenticationRequest":
        self._update(lambda builder: builder.set_realm(realm))
        return self

    def set_connection(self, connection: str) -> "AuthenticationRequest":
        self._update(lambda builder: builder.set_connection(connection))
        return self

    def set_scope(self, scope: str) -> "AuthenticationRequest":
        self._update(lambda builder: builder.set_scope(scope))
        return self

    def set_audience(self, audience: str) -> "AuthenticationRequest":
        self._update(lambda builder: builder.set_audience(audience))
        return self


__all__ = ["Request", "AuthenticationRequest", "default_executor"]
