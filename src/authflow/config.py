from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

DOMAIN_ENV = "AUTHFLOW_DOMAIN"
CLIENT_ID_ENV = "AUTHFLOW_CLIENT_ID"
TIMEOUT_ENV = "AUTHFLOW_TIMEOUT"


@dataclass
class Account:
    """Tenant information and transport tuning for the API client.

    ``domain`` may be given with or without scheme; a bare host is assumed to
    be served over https.
    """

    domain: str
    client_id: str
    timeout: float = 10.0
    connect_timeout: Optional[float] = None
    user_agent: Optional[str] = None
    logging_enabled: bool = False
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.domain, str) or not self.domain.strip():
            raise ValueError("domain must be a non-empty str")
        if not isinstance(self.client_id, str) or not self.client_id:
            raise ValueError("client_id must be a non-empty str")

    @property
    def base_url(self) -> str:
        domain = self.domain.strip().rstrip("/")
        if "://" not in domain:
            domain = f"https://{domain}"
        return domain

    def url(self, *segments: str) -> str:
        path = "/".join(segment.strip("/") for segment in segments)
        return f"{self.base_url}/{path}"

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Account":
        env = os.environ if environ is None else environ
        try:
            domain = env[DOMAIN_ENV]
            client_id = env[CLIENT_ID_ENV]
        except KeyError as exc:
            raise ValueError(f"Missing environment variable {exc.args[0]}") from exc
        timeout = env.get(TIMEOUT_ENV)
        if timeout is None:
            return cls(domain=domain, client_id=client_id)
        return cls(domain=domain, client_id=client_id, timeout=float(timeout))


__all__ = ["Account", "DOMAIN_ENV", "CLIENT_ID_ENV", "TIMEOUT_ENV"]
