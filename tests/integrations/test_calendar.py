from __future__ import annotations

import json
from datetime import date, datetime
from urllib.parse import parse_qs

import httpx
import pytest

from hr_management.core.enums import LeaveStatus, LeaveType, Role
from hr_management.core.exceptions import DependencyFailure
from hr_management.integrations.calendar import EVENTS_URL, TOKEN_URL, GoogleCalendarAdapter
from hr_management.leaves.model import LeaveRequest
from hr_management.users.model import Employee

LINKED = Employee(10, "Eve Engineer", "e10@example.com", "x", Role.EMPLOYEE, 100, 10, calendar_token="refresh-10")
UNLINKED = Employee(20, "Sam Seller", "e20@example.com", "x", Role.EMPLOYEE, 200, 10)


def _leave(leave_type=LeaveType.ANNUAL, event_id=None):
    return LeaveRequest(
        request_id=7,
        employee_id=10,
        leave_type=leave_type,
        start_date=date(2024, 1, 8),
        end_date=date(2024, 1, 10),
        working_days=3,
        reason="Holiday",
        status=LeaveStatus.APPROVED,
        created_at=datetime(2024, 1, 1, 8, 0),
        calendar_event_id=event_id,
    )


class FakeGoogle:
    def __init__(self, *, status=200, token_status=200):
        self.status = status
        self.token_status = token_status
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            form = parse_qs(request.content.decode())
            self.calls.append(("TOKEN", form["refresh_token"][0]))
            return httpx.Response(self.token_status, json={"access_token": "access-1"})

        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, str(request.url), request.headers["Authorization"], body))
        return httpx.Response(self.status, json={"id": "evt-42"})


def _adapter(fake):
    return GoogleCalendarAdapter(client_id="cid", client_secret="secret", transport=httpx.MockTransport(fake))


def test_create_event_posts_all_day_event():
    fake = FakeGoogle()
    event_id = _adapter(fake).create_event(LINKED, _leave())

    assert event_id == "evt-42"
    assert fake.calls[0] == ("TOKEN", "refresh-10")
    method, url, auth, body = fake.calls[1]
    assert (method, url, auth) == ("POST", EVENTS_URL, "Bearer access-1")
    assert body["start"] == {"date": "2024-01-08", "timeZone": "Europe/Paris"}
    assert body["end"] == {"date": "2024-01-11", "timeZone": "Europe/Paris"}
    assert body["colorId"] == "2"
    assert body["extendedProperties"] == {"private": {"leaveId": "7"}}


def test_non_consuming_leave_uses_other_colour():
    fake = FakeGoogle()
    _adapter(fake).create_event(LINKED, _leave(leave_type=LeaveType.SICK))
    assert fake.calls[1][3]["colorId"] == "4"


def test_unlinked_employee_is_a_no_op():
    fake = FakeGoogle()
    adapter = _adapter(fake)

    assert adapter.create_event(UNLINKED, _leave()) is None
    assert adapter.update_event(UNLINKED, _leave(event_id="evt-1")) is False
    assert adapter.delete_event(UNLINKED, _leave(event_id="evt-1")) is False
    assert adapter.delete_event(LINKED, _leave()) is False
    assert fake.calls == []


def test_update_and_delete_target_the_stored_event():
    fake = FakeGoogle()
    adapter = _adapter(fake)

    assert adapter.update_event(LINKED, _leave(event_id="evt-1")) is True
    assert adapter.delete_event(LINKED, _leave(event_id="evt-1")) is True

    methods = [(c[0], c[1]) for c in fake.calls if c[0] != "TOKEN"]
    assert methods == [("PUT", f"{EVENTS_URL}/evt-1"), ("DELETE", f"{EVENTS_URL}/evt-1")]


@pytest.mark.parametrize("fake", [FakeGoogle(status=500), FakeGoogle(token_status=401)])
def test_api_errors_raise_dependency_failure(fake):
    with pytest.raises(DependencyFailure):
        _adapter(fake).create_event(LINKED, _leave())


def test_transport_error_raises_dependency_failure():
    def boom(request):
        raise httpx.ConnectError("unreachable", request=request)

    adapter = GoogleCalendarAdapter(client_id="cid", client_secret="secret", transport=httpx.MockTransport(boom))
    with pytest.raises(DependencyFailure):
        adapter.delete_event(LINKED, _leave(event_id="evt-1"))


@pytest.mark.parametrize("payload", [["not", "an", "object"], "plain"])
def test_unexpected_event_body_raises_dependency_failure(payload):
    def handler(request):
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "access-1"})
        return httpx.Response(200, json=payload)

    adapter = GoogleCalendarAdapter(client_id="cid", client_secret="secret", transport=httpx.MockTransport(handler))
    with pytest.raises(DependencyFailure):
        adapter.create_event(LINKED, _leave())


def test_unreadable_token_response_raises_dependency_failure():
    def handler(request):
        return httpx.Response(200, content=b"<html>oops</html>")

    adapter = GoogleCalendarAdapter(client_id="cid", client_secret="secret", transport=httpx.MockTransport(handler))
    with pytest.raises(DependencyFailure):
        adapter.update_event(LINKED, _leave(event_id="evt-1"))
