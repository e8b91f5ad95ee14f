import json

import httpx
import pytest

from authflow import Account, AuthenticationAPIClient
from authflow import transport as authflow_transport


class ResponseQueue:
    def __init__(self, responses, calls):
        self.responses = list(responses)
        self.calls = calls

    def next(self, method, url, content, headers):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "content": content,
                "json": json.loads(content) if content else None,
                "headers": headers,
            }
        )
        if not self.responses:
            raise AssertionError(f"Unexpected request {method} {url}")
        response = self.responses.pop(0)
        if callable(response):
            response = response()
        if isinstance(response, Exception):
            raise response
        return response


class SyncClientStub:
    def __init__(self, queue):
        self.queue = queue

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def request(self, method, url, content=None, headers=None):
        return self.queue.next(method, url, content, headers)


class AsyncClientStub:
    def __init__(self, queue):
        self.queue = queue

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def request(self, method, url, content=None, headers=None):
        return self.queue.next(method, url, content, headers)


class RequestsSessionStub:
    def __init__(self, queue):
        self.queue = queue

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def request(self, method, url, data=None, headers=None, timeout=None):
        try:
            return self.queue.next(method, url, data, headers)
        finally:
            self.queue.calls[-1]["timeout"] = timeout


@pytest.fixture
def response_factory():
    def _factory(status_code, body=None, url="https://tenant.example.com/"):
        if body is None:
            return httpx.Response(status_code, text="", request=httpx.Request("POST", url))
        if isinstance(body, str):
            return httpx.Response(status_code, text=body, request=httpx.Request("POST", url))
        return httpx.Response(status_code, json=body, request=httpx.Request("POST", url))

    return _factory


@pytest.fixture
def mock_sync_client(monkeypatch):
    def _install(*responses):
        calls = []
        queue = ResponseQueue(responses, calls)

        def client_factory(*_args, **_kwargs):
            return SyncClientStub(queue)

        monkeypatch.setattr(authflow_transport.httpx, "Client", client_factory)
        return calls

    return _install


@pytest.fixture
def mock_async_client(monkeypatch):
    def _install(*responses):
        calls = []
        queue = ResponseQueue(responses, calls)

        def async_client_factory(*_args, **_kwargs):
            return AsyncClientStub(queue)

        monkeypatch.setattr(authflow_transport.httpx, "AsyncClient", async_client_factory)
        return calls

    return _install


@pytest.fixture
def mock_requests_session(monkeypatch):
    def _install(*responses):
        if authflow_transport.requests is None:
            pytest.skip("requests is not installed")
        calls = []
        queue = ResponseQueue(responses, calls)

        def session_factory(*_args, **_kwargs):
            return RequestsSessionStub(queue)

        monkeypatch.setattr(authflow_transport.requests, "Session", session_factory)
        return calls

    return _install


@pytest.fixture
def account():
    return Account("tenant.example.com", "CLIENT_ID")


@pytest.fixture
def api_client(account):
    return AuthenticationAPIClient(account)


@pytest.fixture
def credentials_payload():
    return {
        "access_token": "access-1",
        "id_token": "id-1",
        "refresh_token": "refresh-1",
        "token_type": "Bearer",
        "expires_in": 86400,
        "scope": "openid profile",
    }
