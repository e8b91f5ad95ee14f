from __future__ import annotations

import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Iterator, List

import pytest

from authflow import Account, AuthenticationAPIClient

CLIENT_ID = "integration-client"
PASSWORD = "correct-horse"
ACCESS_TOKEN = "access-integration"
TAKEN_EMAIL = "taken@example.com"


class FakeAuthServer(ThreadingHTTPServer):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.received: List[Dict[str, Any]] = []
        self.lock = threading.Lock()


class Handler(BaseHTTPRequestHandler):
    server: FakeAuthServer

    def _send_json(self, status: int, payload: Any) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_text(self, status: int, text: str) -> None:
        body = text.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _record(self, body: Any) -> None:
        with self.server.lock:
            self.server.received.append(
                {
                    "method": self.command,
                    "path": self.path,
                    "body": body,
                    "headers": {key.lower(): value for key, value in self.headers.items()},
                }
            )

    def do_POST(self) -> None:  # noqa: N802
        length = int(self.headers.get("Content-Length", 0))
        body = json.loads(self.rfile.read(length) or b"{}")
        self._record(body)

        if body.get("client_id") != CLIENT_ID:
            self._send_json(401, {"error": "access_denied", "error_description": "Unknown client."})
            return
        if self.path == "/dbconnections/signup":
            if body.get("email") == TAKEN_EMAIL:
                self._send_json(400, {"code": "user_exists", "description": "The user already exists."})
                return
            self._send_json(200, {"_id": "u-1", "email": body["email"], "email_verified": False})
            return
        if self.path == "/oauth/token":
            if body.get("password") != PASSWORD:
                self._send_json(403, {"error": "invalid_grant", "error_description": "Wrong email or password."})
                return
            self._send_json(200, {"access_token": ACCESS_TOKEN, "token_type": "Bearer", "expires_in": 60})
            return
        if self.path == "/passwordless/start":
            self._send_json(200, {"_id": "p-1", "email": body.get("email"), "email_verified": False})
            return
        if self.path == "/oauth/revoke":
            self._send_text(200, "")
            return
        self._send_text(404, "Not Found")

    def do_GET(self) -> None:  # noqa: N802
        self._record(None)
        if self.path.startswith("/slow"):
            time.sleep(0.2)
            self._send_text(200, "slow-ok")
            return
        if self.path == "/userinfo":
            if self.headers.get("Authorization") != f"Bearer {ACCESS_TOKEN}":
                self._send_json(401, {"error": "invalid_token", "error_description": "Bad token."})
                return
            self._send_json(200, {"sub": "user|integration", "email": "new@example.com"})
            return
        if self.path == "/.well-known/jwks.json":
            self._send_json(200, {"keys": [{"kid": "k1", "kty": "RSA", "n": "abc", "e": "AQAB"}]})
            return
        self._send_text(404, "Not Found")

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A003
        return


@pytest.fixture
def auth_server() -> Iterator[FakeAuthServer]:
    server = FakeAuthServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=1)


@pytest.fixture
def server_url(auth_server: FakeAuthServer) -> str:
    host, port = auth_server.server_address[:2]
    return f"http://{host}:{port}"


@pytest.fixture
def integration_client(server_url: str) -> AuthenticationAPIClient:
    return AuthenticationAPIClient(Account(server_url, CLIENT_ID, timeout=2.0))
