"""
Test UserFeedClient - page fetching, error classification and slot accounting
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from unittest.mock import Mock

import pytest
import requests

from src.coreutils.errors import (
    ApplicationError,
    DataError,
    LocalRequestError,
    NetworkError,
    ResponseError,
)
from src.extract.feed_api import UserFeedClient
from src.extract.rate_limiter import RateLimiter

BASE_URL = "http://feed.test/api/v1/pipe/users/all"


def make_response(payload=None, status_code=200, reason="OK", json_error=None):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


def feed_payload(users, has_next_page=False, status=1):
    return {
        "status": status,
        "message": "ok",
        "data": {"users": users, "pagination": {"hasNextPage": has_next_page}},
    }


def make_client(clock, response=None, side_effect=None):
    session = Mock()
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value = response
    limiter = RateLimiter(clock=clock, sleep=clock.sleep)
    return UserFeedClient(BASE_URL, rate_limiter=limiter, session=session), session, limiter


def test_page_one_is_requested_without_page_param(clock):
    client, session, _ = make_client(clock, make_response(feed_payload([])))

    client.fetch_page(1)

    session.get.assert_called_once_with(BASE_URL, params=None, timeout=30)


def test_later_pages_pass_page_param(clock):
    client, session, _ = make_client(clock, make_response(feed_payload([])))

    client.fetch_page(3)

    session.get.assert_called_once_with(BASE_URL, params={"page": 3}, timeout=30)


def test_users_are_mapped_from_feed_fields(clock):
    users = [
        {
            "user_id": 42,
            "email": "a@example.com",
            "ipAddress": "8.8.8.8",
            "identifierType": "email",
            "createdAt": "2025-01-01T00:00:00Z",
            "updatedAt": "2025-01-02T00:00:00Z",
        },
        {"user_id": "u-2", "email": "b@example.com", "ipAddress": ""},
    ]
    client, _, _ = make_client(clock, make_response(feed_payload(users, has_next_page=True)))

    page = client.fetch_page(1)

    assert page.has_next_page is True
    assert page.first_user_id == "42"
    first, second = page.users
    assert first.ip_address == "8.8.8.8"
    assert first.identifier_type == "email"
    assert first.created_at == "2025-01-01T00:00:00Z"
    assert second.ip_address is None


def test_missing_pagination_and_users_mean_last_empty_page(clock):
    client, _, _ = make_client(clock, make_response({"status": 1, "message": "ok", "data": {}}))

    page = client.fetch_page(1)

    assert page.users == []
    assert page.has_next_page is False


def test_successful_call_consumes_a_slot(clock):
    client, _, limiter = make_client(clock, make_response(feed_payload([])))

    client.fetch_page(1)

    assert limiter.in_flight == 1


def test_application_status_error_consumes_a_slot(clock):
    client, _, limiter = make_client(
        clock, make_response(feed_payload([], status=0) | {"message": "maintenance"})
    )

    with pytest.raises(ApplicationError) as exc_info:
        client.fetch_page(1)

    assert "maintenance" in str(exc_info.value)
    assert exc_info.value.status == 0
    assert limiter.in_flight == 1


def test_http_error_is_response_error_and_consumes_a_slot(clock):
    client, _, limiter = make_client(
        clock, make_response(status_code=503, reason="Service Unavailable")
    )

    with pytest.raises(ResponseError) as exc_info:
        client.fetch_page(2)

    assert exc_info.value.status_code == 503
    assert limiter.in_flight == 1


def test_no_response_is_network_error_and_consumes_a_slot(clock):
    client, _, limiter = make_client(
        clock, side_effect=requests.exceptions.ConnectionError("refused")
    )

    with pytest.raises(NetworkError):
        client.fetch_page(1)

    assert limiter.in_flight == 1


def test_timeout_is_network_error(clock):
    client, _, _ = make_client(clock, side_effect=requests.exceptions.ReadTimeout("slow"))

    with pytest.raises(NetworkError):
        client.fetch_page(1)


def test_local_error_does_not_consume_a_slot(clock):
    client, _, limiter = make_client(
        clock, side_effect=requests.exceptions.MissingSchema("no scheme")
    )

    with pytest.raises(LocalRequestError):
        client.fetch_page(1)

    assert limiter.in_flight == 0


def test_invalid_json_is_data_error(clock):
    client, _, limiter = make_client(
        clock, make_response(json_error=ValueError("Expecting value"))
    )

    with pytest.raises(DataError):
        client.fetch_page(1)

    assert limiter.in_flight == 1


def test_user_without_id_is_dropped_and_page_kept(clock, caplog):
    users = [{"email": "x@example.com"}, {"user_id": "u-1", "email": "y@example.com"}]
    client, _, _ = make_client(clock, make_response(feed_payload(users, has_next_page=True)))

    with caplog.at_level("WARNING", logger="src.extract.schemas"):
        page = client.fetch_page(1)

    assert [user.user_id for user in page.users] == ["u-1"]
    assert page.has_next_page is True
    assert "without user_id" in caplog.text


def test_non_object_user_entry_is_data_error(clock):
    client, _, _ = make_client(clock, make_response(feed_payload(["u-1"])))

    with pytest.raises(DataError):
        client.fetch_page(1)


def test_malformed_success_body_is_data_error(clock):
    client, _, _ = make_client(clock, make_response({"status": 1, "data": "unavailable"}))

    with pytest.raises(DataError):
        client.fetch_page(1)


@pytest.mark.parametrize(
    "data",
    [[], "unavailable", {"users": [{"email": "x@example.com"}]}, None],
)
def test_failed_status_is_application_error_whatever_the_data(clock, data):
    client, _, limiter = make_client(
        clock, make_response({"status": 0, "message": "down", "data": data})
    )

    with pytest.raises(ApplicationError) as exc_info:
        client.fetch_page(1)

    assert exc_info.value.status == 0
    assert limiter.in_flight == 1


def test_fourth_page_fetch_waits_for_rate_limit(clock):
    client, session, _ = make_client(clock, make_response(feed_payload([], has_next_page=True)))

    for page in range(1, 5):
        client.fetch_page(page)

    assert session.get.call_count == 4
    assert clock.sleeps == [pytest.approx(10.1)]
