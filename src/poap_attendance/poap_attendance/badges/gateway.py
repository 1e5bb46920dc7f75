from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import requests

from ..core.exceptions import GatewayRejectedError, GatewayUnavailableError
from .client import BadgeServiceClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BadgeReceipt:
    transaction_ref: str


class BadgeGateway(Protocol):
    """Requests minting of a commemorative badge.

    Raises GatewayUnavailableError or GatewayRejectedError; callers treat both
    as non-fatal.
    """

    def issue_badge(self, *, recipient: str, title: str, role: str, expiry: int) -> BadgeReceipt:
        raise NotImplementedError


class HttpBadgeGateway(BadgeGateway):
    """Badge issuance through the HTTP badge service.

    POST /badges {recipient, title, role, expiry} -> {"transactionRef": "0x..."}
    """

    def __init__(self, client: BadgeServiceClient):
        self._client = client

    def issue_badge(self, *, recipient: str, title: str, role: str, expiry: int) -> BadgeReceipt:
        if not self._client.is_configured:
            raise GatewayUnavailableError("Badge service is not configured")

        payload = {"recipient": recipient, "title": title, "role": role, "expiry": int(expiry)}
        try:
            resp = self._client.post_json("/badges", payload)
        except requests.Timeout as e:
            raise GatewayUnavailableError("Badge service timed out") from e
        except requests.RequestException as e:
            raise GatewayUnavailableError(f"Badge service unreachable: {e}") from e

        if resp.status_code >= 500 or resp.status_code == 429:
            raise GatewayUnavailableError(f"Badge service unavailable (HTTP {resp.status_code})")
        if resp.status_code >= 400:
            raise GatewayRejectedError(_error_message(resp))

        body = _json_object(resp)
        ref = str(body.get("transactionRef") or "").strip()
        if not ref:
            raise GatewayRejectedError("Badge service returned no transaction reference")
        return BadgeReceipt(transaction_ref=ref)


def _json_object(resp: requests.Response) -> dict:
    """Response body when it is a JSON object, else an empty dict."""
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _error_message(resp: requests.Response) -> str:
    message = _json_object(resp).get("message")
    return str(message or f"Badge service rejected request (HTTP {resp.status_code})")
