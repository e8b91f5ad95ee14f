from __future__ import annotations

import logging
from typing import Any, Dict, NamedTuple, Optional
from urllib.parse import urlencode

from .config import Account
from .exceptions import AsyncClientUnavailableError, RequestTimeoutError, TransportError

try:
    import httpx
except ImportError:  # pragma: no cover - depends on installed extra
    httpx = None  # type: ignore[assignment]

try:
    import requests
except ImportError:  # pragma: no cover - depends on installed extra
    requests = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class TransportResponse(NamedTuple):
    status_code: int
    text: str
    headers: Dict[str, str]


def build_url(url: str, params: Optional[Dict[str, Any]] = None) -> str:
    if not params:
        return url
    clean = {k: v for k, v in params.items() if v is not None}
    if not clean:
        return url
    return f"{url}?{urlencode(clean)}"


class Transport:
    """Performs HTTP calls for requests; shared by every request of a client."""

    def __init__(self, account: Account) -> None:
        self.timeout = account.timeout
        self.connect_timeout = account.connect_timeout
        self.logging_enabled = account.logging_enabled
        self.default_headers: Dict[str, str] = {"Accept": JSON_CONTENT_TYPE}
        self.default_headers.update(account.headers)
        if account.user_agent:
            self.default_headers["User-Agent"] = account.user_agent

    def set_user_agent(self, user_agent: str) -> None:
        self.default_headers = {**self.default_headers, "User-Agent": user_agent}

    def _merge_headers(self, content: Optional[str], headers: Optional[Dict[str, str]]) -> Dict[str, str]:
        merged = dict(self.default_headers)
        if content is not None:
            merged["Content-Type"] = JSON_CONTENT_TYPE
        if headers:
            merged.update(headers)
        return merged

    def _httpx_timeout(self) -> Any:
        if self.connect_timeout is None:
            return self.timeout
        return httpx.Timeout(self.timeout, connect=self.connect_timeout)

    def _requests_timeout(self) -> Any:
        if self.connect_timeout is None:
            return self.timeout
        return (self.connect_timeout, self.timeout)

    def _log_response(self, method: str, url: str, status_code: int) -> None:
        if self.logging_enabled:
            logger.info("%s %s -> %s", method, url, status_code)
        else:
            logger.debug("%s %s -> %s", method, url, status_code)

    @staticmethod
    def _ensure_sync_backend() -> None:
        if httpx is None and requests is None:
            raise RuntimeError("No HTTP client is installed. Install httpx or requests.")

    def send(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        content: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResponse:
        self._ensure_sync_backend()
        url = build_url(url, params)
        headers = self._merge_headers(content, headers)
        logger.debug("Sending %s %s", method, url)

        if httpx is not None:
            try:
                with httpx.Client(timeout=self._httpx_timeout()) as client:
                    response = client.request(method, url, content=content, headers=headers)
            except httpx.TimeoutException as exc:
                raise RequestTimeoutError(f"Timed out waiting for {method} {url}.") from exc
            except httpx.HTTPError as exc:
                raise TransportError(f"httpx could not complete {method} {url}: {exc}") from exc
        else:
            try:
                with requests.Session() as session:  # type: ignore[union-attr]
                    response = session.request(
                        method, url, data=content, headers=headers, timeout=self._requests_timeout()
                    )
            except requests.Timeout as exc:  # type: ignore[union-attr]
                raise RequestTimeoutError(f"Timed out waiting for {method} {url}.") from exc
            except requests.RequestException as exc:  # type: ignore[union-attr]
                raise TransportError(f"requests could not complete {method} {url}: {exc}") from exc

        self._log_response(method, url, int(response.status_code))
        return TransportResponse(int(response.status_code), response.text, dict(response.headers))

    async def send_async(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        content: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResponse:
        if httpx is None:
            raise AsyncClientUnavailableError("Async methods require httpx.")

        url = build_url(url, params)
        headers = self._merge_headers(content, headers)
        logger.debug("Sending %s %s", method, url)
        try:
            async with httpx.AsyncClient(timeout=self._httpx_timeout()) as client:
                response = await client.request(method, url, content=content, headers=headers)
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(f"Timed out waiting for {method} {url}.") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"httpx could not complete {method} {url}: {exc}") from exc

        self._log_response(method, url, int(response.status_code))
        return TransportResponse(int(response.status_code), response.text, dict(response.headers))


__all__ = ["Transport", "TransportResponse", "build_url", "httpx", "requests"]
