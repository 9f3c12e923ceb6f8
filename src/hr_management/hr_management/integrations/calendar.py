from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional, Protocol

import httpx

from ..core.constants import BALANCE_CONSUMING_TYPES
from ..core.exceptions import DependencyFailure
from ..leaves.model import LeaveRequest
from ..users.model import Employee

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"


def _json_object(resp: httpx.Response, what: str) -> dict:
    try:
        data = resp.json()
    except ValueError as e:
        raise DependencyFailure(f"Calendar API returned an unreadable {what}") from e
    if not isinstance(data, dict):
        raise DependencyFailure(f"Calendar API returned an unexpected {what}")
    return data


class CalendarPort(Protocol):
    """Mirror approved leave in the employee's calendar.

    Every call is a no-op returning ``None``/``False`` when the employee has no
    linked calendar.
    """

    def create_event(self, employee: Employee, leave: LeaveRequest) -> Optional[str]:
        raise NotImplementedError

    def update_event(self, employee: Employee, leave: LeaveRequest) -> bool:
        raise NotImplementedError

    def delete_event(self, employee: Employee, leave: LeaveRequest) -> bool:
        raise NotImplementedError


class GoogleCalendarAdapter(CalendarPort):
    """Google Calendar REST API using the employee's stored refresh token."""

    def __init__(
        self,
        *,
        client_id: Optional[str],
        client_secret: Optional[str],
        timezone: str = "Europe/Paris",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._client_id = client_id or ""
        self._client_secret = client_secret or ""
        self._timezone = timezone
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)

    def _access_token(self, client: httpx.Client, employee: Employee) -> str:
        resp = client.post(
            TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "refresh_token": employee.calendar_token,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            },
        )
        if resp.status_code >= 400:
            raise DependencyFailure(f"Calendar token refresh failed: {resp.status_code}")
        token = _json_object(resp, "token response").get("access_token")
        if not token:
            raise DependencyFailure("Calendar token refresh returned no access token")
        return token

    def _event_body(self, leave: LeaveRequest) -> dict:
        # All-day events are end-exclusive.
        return {
            "summary": f"Leave - {leave.leave_type.value}",
            "description": f"Type: {leave.leave_type.value}\nReason: {leave.reason}\nStatus: {leave.status.value}",
            "start": {"date": leave.start_date.isoformat(), "timeZone": self._timezone},
            "end": {"date": (leave.end_date + timedelta(days=1)).isoformat(), "timeZone": self._timezone},
            "colorId": "2" if leave.leave_type in BALANCE_CONSUMING_TYPES else "4",
            "extendedProperties": {"private": {"leaveId": str(leave.request_id)}},
        }

    def _call(self, employee: Employee, method: str, url: str, body: Optional[dict] = None) -> httpx.Response:
        try:
            with self._client() as client:
                token = self._access_token(client, employee)
                resp = client.request(method, url, json=body, headers={"Authorization": f"Bearer {token}"})
        except (httpx.HTTPError, ValueError) as e:
            raise DependencyFailure(f"Calendar API call failed: {e}") from e

        if resp.status_code >= 400:
            raise DependencyFailure(f"Calendar API answered {resp.status_code}: {resp.text}")
        return resp

    def create_event(self, employee: Employee, leave: LeaveRequest) -> Optional[str]:
        if not employee.has_calendar_link:
            logger.info("Employee %s has no linked calendar", employee.employee_id)
            return None

        resp = self._call(employee, "POST", EVENTS_URL, self._event_body(leave))
        event_id = _json_object(resp, "event").get("id")
        logger.info("Calendar event %s created for leave %s", event_id, leave.request_id)
        return event_id

    def update_event(self, employee: Employee, leave: LeaveRequest) -> bool:
        if not employee.has_calendar_link or not leave.calendar_event_id:
            return False

        self._call(employee, "PUT", f"{EVENTS_URL}/{leave.calendar_event_id}", self._event_body(leave))
        logger.info("Calendar event %s updated for leave %s", leave.calendar_event_id, leave.request_id)
        return True

    def delete_event(self, employee: Employee, leave: LeaveRequest) -> bool:
        if not employee.has_calendar_link or not leave.calendar_event_id:
            return False

        self._call(employee, "DELETE", f"{EVENTS_URL}/{leave.calendar_event_id}")
        logger.info("Calendar event %s deleted for leave %s", leave.calendar_event_id, leave.request_id)
        return True
