from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from ..core.constants import DEFAULT_BADGE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class BadgeServiceClient:
    """Connection to the badge issuance service.

    Constructed explicitly and injected into the gateway; owns one
    requests.Session for its lifetime (connect -> calls -> close).
    """

    def __init__(self, base_url: str, *, token: str = "", timeout: float = DEFAULT_BADGE_TIMEOUT_SECONDS):
        self._base_url = (base_url or "").rstrip("/")
        self._token = token or ""
        self._timeout = float(timeout)
        self._session: Optional[requests.Session] = None

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url)

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    def connect(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = requests.Session()
        session.headers.update({"Accept": "application/json"})
        if self._token:
            session.headers["Authorization"] = f"Bearer {self._token}"
        self._session = session
        logger.info("Badge service client ready: %s", self._base_url or "<not configured>")
        return session

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def health_check(self) -> bool:
        if not self.is_configured:
            return False
        session = self.connect()
        try:
            resp = session.get(f"{self._base_url}/health", timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("Badge service health check failed: %s", e)
            return False
        return resp.status_code == 200

    def post_json(self, path: str, payload: dict[str, Any]) -> requests.Response:
        """POST bounded by the configured timeout; requests exceptions propagate."""
        session = self.connect()
        return session.post(f"{self._base_url}{path}", json=payload, timeout=self._timeout)
