from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence, Tuple, Union

from ..core.constants import BALANCE_CONSUMING_TYPES
from ..core.enums import EventKind, LeaveStatus
from ..core.exceptions import DependencyFailure
from ..leaves.model import LeaveRequest
from ..users.model import Employee
from .events import HttpEventPublisher
from .mailer import MailSender

logger = logging.getLogger(__name__)


class NotificationPort(Protocol):
    def notify(self, employee_id: int, event: EventKind, payload: dict) -> None:
        raise NotImplementedError

    def email_send(self, address: Union[str, Sequence[str]], subject: str, html: str) -> bool:
        raise NotImplementedError


class NotificationFanout(NotificationPort):
    """E-mail plus real-time event delivery; failures are logged and swallowed."""

    def __init__(self, mailer: MailSender, events: HttpEventPublisher):
        self._mailer = mailer
        self._events = events

    def notify(self, employee_id: int, event: EventKind, payload: dict) -> None:
        try:
            self._events.publish(employee_id, event, payload)
        except DependencyFailure as e:
            logger.warning("Event %s for employee %s not delivered: %s", event.value, employee_id, e)

    def email_send(self, address: Union[str, Sequence[str]], subject: str, html: str) -> bool:
        try:
            return self._mailer.send(address, subject, html)
        except DependencyFailure as e:
            logger.warning("Mail %r not delivered: %s", subject, e)
            return False


def _fmt(d) -> str:
    return d.strftime("%d/%m/%Y")


def _leave_rows(leave: LeaveRequest) -> str:
    return (
        f"<p><strong>Leave type:</strong> {leave.leave_type.value}</p>"
        f"<p><strong>Start date:</strong> {_fmt(leave.start_date)}</p>"
        f"<p><strong>End date:</strong> {_fmt(leave.end_date)}</p>"
        f"<p><strong>Working days:</strong> {leave.working_days}</p>"
    )


def new_request_email(employee: Employee, leave: LeaveRequest) -> Tuple[str, str]:
    return (
        "New leave request",
        "<h1>New leave request</h1>"
        f"<p><strong>Employee:</strong> {employee.full_name}</p>"
        f"{_leave_rows(leave)}"
        f"<p><strong>Reason:</strong> {leave.reason}</p>"
        "<p>Please sign in to approve or reject this request.</p>",
    )


def pending_admin_email(employee: Employee, leave: LeaveRequest) -> Tuple[str, str]:
    return (
        "Leave request awaiting final approval",
        "<h1>Leave request awaiting final approval</h1>"
        "<p>A department manager approved this request; it now needs your final decision.</p>"
        f"<p><strong>Employee:</strong> {employee.full_name}</p>"
        f"{_leave_rows(leave)}"
        f"<p><strong>Reason:</strong> {leave.reason}</p>",
    )


def status_update_email(employee: Employee, leave: LeaveRequest, comment: Optional[str]) -> Tuple[str, str]:
    period = f"from {_fmt(leave.start_date)} to {_fmt(leave.end_date)}"
    if leave.status == LeaveStatus.MANAGER_APPROVED:
        subject = "Your leave request was approved by your manager"
        body = (
            f"<p>Your leave request {period} was approved by your manager.</p>"
            "<p>It is now waiting for final approval by the administration.</p>"
        )
    elif leave.status == LeaveStatus.APPROVED:
        subject = "Your leave request has been approved"
        body = f"<p>Your leave request {period} has been approved.</p>"
        if leave.leave_type in BALANCE_CONSUMING_TYPES:
            body += "<p>Your leave balance has been updated accordingly.</p>"
    else:
        subject = "Your leave request has been rejected"
        body = f"<p>Your leave request {period} has been rejected.</p>"

    if comment:
        label = "Reason for rejection" if leave.status == LeaveStatus.REJECTED else "Comment"
        body += f"<p><strong>{label}:</strong> {comment}</p>"

    return (
        subject,
        "<h1>Leave request update</h1>"
        f"<p>Hello {employee.full_name},</p>"
        f"{body}"
        f"<p>Leave type: {leave.leave_type.value}</p>"
        f"<p>Working days: {leave.working_days}</p>"
        "<p>Regards,<br>HR team</p>",
    )


def attendance_reminder_email(employee: Employee) -> Tuple[str, str]:
    return (
        "Check-in reminder",
        "<h2>Check-in reminder</h2>"
        f"<p>Hello {employee.full_name},</p>"
        "<p>We have not recorded your check-in for today yet.</p>"
        "<p>Please sign in to record it, or contact your manager if you are absent.</p>"
        "<p>Regards,<br>HR system</p>",
    )
