from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from src.poap_attendance.poap_attendance.badges.client import BadgeServiceClient
from src.poap_attendance.poap_attendance.badges.gateway import HttpBadgeGateway
from src.poap_attendance.poap_attendance.core.exceptions import GatewayRejectedError, GatewayUnavailableError


def _response(status: int, body=None):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    if body is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


def _gateway(session_post):
    client = BadgeServiceClient("http://badges.local/", token="secret", timeout=2)
    client.connect()
    client._session.post = session_post
    return HttpBadgeGateway(client), client


def _issue(gateway):
    return gateway.issue_badge(recipient="0xabc", title="Intro", role="Student", expiry=0)


def test_issue_badge_returns_receipt():
    post = MagicMock(return_value=_response(200, {"transactionRef": "0xfeed"}))
    gateway, client = _gateway(post)

    receipt = _issue(gateway)

    assert receipt.transaction_ref == "0xfeed"
    post.assert_called_once_with(
        "http://badges.local/badges",
        json={"recipient": "0xabc", "title": "Intro", "role": "Student", "expiry": 0},
        timeout=2.0,
    )
    assert client._session.headers["Authorization"] == "Bearer secret"


def test_unconfigured_client_is_unavailable():
    gateway = HttpBadgeGateway(BadgeServiceClient(""))
    with pytest.raises(GatewayUnavailableError):
        _issue(gateway)


@pytest.mark.parametrize("error", [requests.Timeout("slow"), requests.ConnectionError("down")])
def test_transport_errors_are_unavailable(error):
    gateway, _ = _gateway(MagicMock(side_effect=error))
    with pytest.raises(GatewayUnavailableError):
        _issue(gateway)


@pytest.mark.parametrize("status", [500, 503, 429])
def test_server_side_statuses_are_unavailable(status):
    gateway, _ = _gateway(MagicMock(return_value=_response(status)))
    with pytest.raises(GatewayUnavailableError):
        _issue(gateway)


def test_client_error_is_rejected_with_service_message():
    gateway, _ = _gateway(MagicMock(return_value=_response(400, {"message": "invalid recipient"})))
    with pytest.raises(GatewayRejectedError, match="invalid recipient"):
        _issue(gateway)


def test_missing_transaction_ref_is_rejected():
    gateway, _ = _gateway(MagicMock(return_value=_response(200, {})))
    with pytest.raises(GatewayRejectedError):
        _issue(gateway)


def test_client_close_drops_session():
    client = BadgeServiceClient("http://badges.local")
    client.connect()
    assert client.is_connected
    client.close()
    assert not client.is_connected


@pytest.mark.parametrize("body", [["0xfeed"], "0xfeed", 42])
def test_non_object_success_body_is_rejected(body):
    gateway, _ = _gateway(MagicMock(return_value=_response(200, body)))
    with pytest.raises(GatewayRejectedError, match="no transaction reference"):
        _issue(gateway)


def test_non_object_error_body_falls_back_to_status_message():
    gateway, _ = _gateway(MagicMock(return_value=_response(422, ["bad"])))
    with pytest.raises(GatewayRejectedError, match="HTTP 422"):
        _issue(gateway)
