from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..core.enums import EventKind
from ..core.exceptions import DependencyFailure

logger = logging.getLogger(__name__)


class HttpEventPublisher:
    """Posts real-time events to the notification service (``POST /notify``).

    Without a base URL events are only logged.
    """

    def __init__(
        self,
        base_url: Optional[str],
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = (base_url or "").rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def publish(self, employee_id: int, kind: EventKind, payload: dict) -> None:
        if not self._base_url:
            logger.debug("Event %s for employee %s (no notification service configured)", kind.value, employee_id)
            return

        body = {"employeeId": employee_id, "type": kind.value, **payload}
        try:
            with httpx.Client(base_url=self._base_url, timeout=self._timeout, transport=self._transport) as client:
                resp = client.post("/notify", json=body)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DependencyFailure(f"Notification service unreachable: {e}") from e

        if resp.status_code >= 400:
            raise DependencyFailure(f"Notification service answered {resp.status_code}: {resp.text}")
