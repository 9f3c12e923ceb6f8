"""Daily attendance jobs.

The decisions are pure functions of (records, employees, as_of); the runners only
read the store, apply the writes and send notifications. Both are meant to be
started from cron through the ``flask mark-absences`` / ``flask send-reminders``
commands, on weekdays at 23:00 and 10:00.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from ..common.datetime_utils import now_local
from ..core.constants import ABSENCE_NOTE
from ..core.enums import AttendanceStatus, EventKind
from ..core.exceptions import DependencyFailure
from ..integrations.notifications import NotificationPort, attendance_reminder_email
from ..users.model import Employee
from ..users.repository import UserRepository
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AbsenceWrite:
    employee_id: int
    work_date: date
    note: str
    creates_record: bool


def _by_employee(records: Iterable[AttendanceRecord], day: date) -> Dict[int, AttendanceRecord]:
    return {r.employee_id: r for r in records if r.work_date == day}


def compute_absence_updates(
    records: Iterable[AttendanceRecord],
    employees: Iterable[Employee],
    as_of: datetime,
) -> List[AbsenceWrite]:
    day = as_of.date()
    existing = _by_employee(records, day)
    writes: List[AbsenceWrite] = []

    for employee in employees:
        if not employee.is_active:
            continue
        record = existing.get(employee.employee_id)
        if record is None:
            writes.append(AbsenceWrite(employee.employee_id, day, ABSENCE_NOTE, creates_record=True))
        elif record.check_in_time is None:
            if record.status == AttendanceStatus.ABSENT and record.note == ABSENCE_NOTE:
                continue
            writes.append(AbsenceWrite(employee.employee_id, day, ABSENCE_NOTE, creates_record=False))
    return writes


def compute_reminder_targets(records: Iterable[AttendanceRecord], employees: Iterable[Employee]) -> List[Employee]:
    """Active employees without a check-in among ``records`` (the day's records)."""
    checked_in = {r.employee_id for r in records if r.check_in_time is not None}
    return [e for e in employees if e.is_active and e.employee_id not in checked_in]


def _notify(notifications: NotificationPort, employee_id: int, kind: EventKind, message: str) -> None:
    try:
        notifications.notify(employee_id, kind, {"message": message})
    except DependencyFailure as e:
        logger.warning("%s event for employee %s failed: %s", kind.value, employee_id, e)


class AbsenceSweeper:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        notifications: NotificationPort,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._notifications = notifications
        self._clock = clock

    def run(self, as_of: Optional[datetime] = None) -> List[AbsenceWrite]:
        as_of = as_of or self._clock()
        day = as_of.date()
        writes = compute_absence_updates(self._attendance.list_for_date(day), self._users.list_active(), as_of)

        created = 0
        for write in writes:
            if self._attendance.mark_absent(write.employee_id, write.work_date, write.note):
                created += 1
                _notify(
                    self._notifications,
                    write.employee_id,
                    EventKind.ATTENDANCE_MARKED_ABSENT,
                    "You have been marked absent today",
                )

        logger.info("Absence sweep for %s: %d marked absent (%d new records)", day, len(writes), created)
        return writes


class ReminderDispatcher:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        notifications: NotificationPort,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._notifications = notifications
        self._clock = clock

    def run(self, as_of: Optional[datetime] = None) -> List[Employee]:
        as_of = as_of or self._clock()
        day = as_of.date()
        targets = compute_reminder_targets(self._attendance.list_for_date(day), self._users.list_active())

        delivered = 0
        for employee in targets:
            subject, html = attendance_reminder_email(employee)
            try:
                if self._notifications.email_send(employee.email, subject, html):
                    delivered += 1
            except DependencyFailure as e:
                logger.warning("Reminder mail to %s failed: %s", employee.email, e)
            _notify(
                self._notifications,
                employee.employee_id,
                EventKind.ATTENDANCE_REMINDER,
                "Don't forget to record your attendance today",
            )

        logger.info("Check-in reminders for %s: %d employees, %d e-mails delivered", day, len(targets), delivered)
        return targets
