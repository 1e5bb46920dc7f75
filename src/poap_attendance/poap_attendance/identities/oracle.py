from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests

from ..core.constants import DEFAULT_ORACLE_TIMEOUT_SECONDS
from ..core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class SignatureOracle(Protocol):
    """Verifies a signed login message and returns the signer's address."""

    def verify(self, *, address: str, message: str, signature: str) -> str:
        raise NotImplementedError


class HttpSignatureOracle:
    """Signature verification delegated to a remote service.

    POST {base_url}/verify {address, message, signature} -> {"identity": "0x..."}
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_ORACLE_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = float(timeout)
        self._session = session or requests.Session()

    def verify(self, *, address: str, message: str, signature: str) -> str:
        if not self._base_url:
            raise AuthenticationError("Signature verification is not configured")

        try:
            resp = self._session.post(
                f"{self._base_url}/verify",
                json={"address": address, "message": message, "signature": signature},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning("Signature oracle unreachable: %s", e)
            raise AuthenticationError("Signature verification unavailable") from e

        if resp.status_code != 200:
            raise AuthenticationError("Invalid signature")

        try:
            identity = str(resp.json().get("identity") or "")
        except ValueError:
            identity = ""
        if not identity:
            raise AuthenticationError("Invalid signature")
        return identity
