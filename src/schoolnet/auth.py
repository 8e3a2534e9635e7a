"""schoolnet.auth

OAuth2 client-credentials token acquisition with expiry-based reuse.
"""
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional

import requests
from pydantic import BaseModel

from .errors import AuthenticationError
from .log import logger
from .retry import RetryPolicy

__all__ = ["Credentials", "TokenCache", "EXPIRY_MARGIN_MS"]

GRANT_TYPE = "client_credentials"
SCOPE_PREFIX = "default_tenant_path:"
EXPIRY_MARGIN_MS = 10 * 1000


class Credentials(BaseModel):
    client_id: str = ""
    client_secret: str = ""
    grant_type: str = GRANT_TYPE
    scope: Optional[str] = None

    @classmethod
    def from_config(cls, config) -> "Credentials":
        return cls(
            client_id=config.client_id,
            client_secret=config.client_secret,
            scope=config.scope and SCOPE_PREFIX + config.scope,
        )

    def as_payload(self) -> Dict[str, str]:
        """Token request body with empty entries dropped."""
        return {k: v for k, v in self.model_dump().items() if v}


def _now_ms() -> int:
    return int(time.time() * 1000)


class TokenCache:
    """Hands out a bearer token, fetching a new one only once the old expires.

    Refreshes run under a lock so concurrent callers that find the token
    expired wait for a single fetch instead of each requesting their own.
    """

    def __init__(
        self,
        session: requests.Session,
        token_url: str,
        credentials: Credentials,
        timeout: Optional[float] = None,
        retry: Optional[RetryPolicy] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.session = session
        self.token_url = token_url
        self.credentials = credentials
        self.timeout = timeout
        self.retry = retry or RetryPolicy()
        self.clock = clock
        self.token: Optional[str] = None
        self.expires: int = 0
        self._lock = threading.Lock()

    def valid(self, now: Optional[int] = None) -> bool:
        now = self.clock() if now is None else now
        return self.token is not None and now < self.expires

    def get_token(self) -> str:
        if self.valid():
            logger.debug("Using existing token.")
            return self.token
        with self._lock:
            start = self.clock()
            if self.valid(start):
                return self.token
            data = self._request_token()
            self.token = data["access_token"]
            self.expires = start + int(data.get("expires_in") or 0) * 1000 - EXPIRY_MARGIN_MS
            logger.info("token obtained in: %dms expires: %d", self.clock() - start, self.expires)
            return self.token

    def invalidate(self) -> None:
        self.token = None
        self.expires = 0

    def _request_token(self) -> Dict[str, Any]:
        """POST the credentials, retrying network failures with backoff."""
        attempts_remaining = self.retry.retries
        while True:
            logger.info("Requesting access token...")
            try:
                r = self.session.post(
                    self.token_url,
                    data=self.credentials.as_payload(),
                    timeout=self.timeout,
                )
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                logger.error("Token request failed: %s", e)
                if not attempts_remaining:
                    raise
                self.retry.wait(attempts_remaining)
                attempts_remaining -= 1
                continue
            return self._parse(r)

    @staticmethod
    def _parse(r: requests.Response) -> Dict[str, Any]:
        try:
            data = r.json()
        except ValueError:
            raise AuthenticationError(body=r.text)
        if not isinstance(data, dict) or not data.get("access_token"):
            raise AuthenticationError(body=data)
        return data
