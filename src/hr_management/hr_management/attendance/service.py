from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import is_after_cutoff, now_local, parse_iso_date, parse_iso_datetime
from ..common.validators import require_enum
from ..core.constants import DEFAULT_HISTORY_LIMIT, LATE_NOTE
from ..core.enums import AttendanceAction, AttendanceStatus, EventKind, Role
from ..core.exceptions import AuthorizationError, DependencyFailure, NotFoundError, ValidationError
from ..integrations.notifications import NotificationPort
from ..users.department_repository import DepartmentRepository
from ..users.model import Actor, Employee
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

RECORDER_ROLES = frozenset({Role.ADMIN, Role.ASSISTANT})


def _as_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return parse_iso_datetime(str(value))


def _as_optional_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value))


class AttendanceService:
    """Arrival/departure recording on behalf of employees, plus manual corrections."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        departments: DepartmentRepository,
        notifications: NotificationPort,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._departments = departments
        self._notifications = notifications
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._clock = clock

    @staticmethod
    def _require_recorder(actor: Actor) -> None:
        if actor.role not in RECORDER_ROLES:
            raise AuthorizationError("Only administrators and assistants can record attendance")

    def _employee(self, employee_id: int) -> Employee:
        employee = self._users.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _publish(self, employee_id: int, kind: EventKind, message: str, record: Optional[AttendanceRecord]) -> None:
        payload = {"message": message}
        if record is not None:
            payload["attendance"] = record.to_dict()
        try:
            self._notifications.notify(employee_id, kind, payload)
        except DependencyFailure as e:
            logger.warning("%s event for employee %s failed: %s", kind.value, employee_id, e)

    def record(
        self,
        actor: Actor,
        *,
        employee_id: int,
        kind,
        at=None,
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        """Set the arrival or departure time of the employee's record for that day."""
        self._require_recorder(actor)
        kind = require_enum(AttendanceAction, kind, "type")
        at = _as_datetime(at) or self._clock()
        self._employee(employee_id)
        note = (note or "").strip() or None

        record, created = self._attendance.get_or_create(
            int(employee_id), at.date(), recorded_by=actor.employee_id, note=note
        )

        check_in, check_out = record.check_in_time, record.check_out_time
        if kind == AttendanceAction.ARRIVAL:
            decision = self._factory.for_arrival(at=at).decide_arrival(at=at, record=record)
            check_in = at
        else:
            decision = self._factory.for_departure(record=record).decide_departure(at=at, record=record)
            check_out = at

        new_note = record.note
        if decision.note and not new_note:
            new_note = decision.note
        if note:
            new_note = note

        self._attendance.update_record(
            record.attendance_id,
            check_in_time=check_in,
            check_out_time=check_out,
            status=decision.status,
            note=new_note,
        )
        updated = self._record(record.attendance_id)
        logger.info(
            "%s of employee %s recorded by %s (%s, %s)",
            kind.value,
            employee_id,
            actor.employee_id,
            updated.status.value,
            "new record" if created else "existing record",
        )

        self._publish(int(employee_id), EventKind.ATTENDANCE_RECORDED, f"Your {kind.value} has been recorded", updated)
        return updated

    def update_record(
        self,
        actor: Actor,
        attendance_id: int,
        *,
        check_in_time=None,
        check_out_time=None,
        status=None,
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        """Manual correction; a late arrival time re-applies the late rule."""
        self._require_recorder(actor)
        record = self._record(attendance_id)

        new_in = record.check_in_time
        new_out = record.check_out_time
        new_status = record.status
        new_note = record.note
        note = (note or "").strip() or None

        check_in = _as_datetime(check_in_time)
        if check_in is not None:
            new_in = check_in
            if is_after_cutoff(check_in, self._factory.late_cutoff):
                new_status = AttendanceStatus.LATE
                if not note and not record.note:
                    new_note = LATE_NOTE

        check_out = _as_datetime(check_out_time)
        if check_out is not None:
            new_out = check_out

        if status not in (None, ""):
            new_status = require_enum(AttendanceStatus, status, "status")
        if note:
            new_note = note

        if new_in and new_out and new_out < new_in:
            raise ValidationError("Departure time cannot be before arrival time")

        self._attendance.update_record(
            record.attendance_id,
            check_in_time=new_in,
            check_out_time=new_out,
            status=new_status,
            note=new_note,
        )
        updated = self._record(record.attendance_id)
        self._publish(updated.employee_id, EventKind.ATTENDANCE_UPDATED, "Your attendance has been updated", updated)
        return updated

    def delete_record(self, actor: Actor, attendance_id: int) -> None:
        self._require_recorder(actor)
        record = self._record(attendance_id)
        if not self._attendance.delete(record.attendance_id):
            raise NotFoundError("Attendance record not found")

        logger.info("Attendance record %s deleted by %s", record.attendance_id, actor.employee_id)
        self._publish(record.employee_id, EventKind.ATTENDANCE_DELETED, "An attendance record was deleted", record)

    def history(
        self,
        actor: Actor,
        employee_id: int,
        *,
        start_date=None,
        end_date=None,
    ) -> Sequence[AttendanceRecord]:
        employee = self._employee(employee_id)

        if actor.employee_id != employee.employee_id and actor.role not in RECORDER_ROLES:
            dept = self._departments.get_managed_by(actor.employee_id) if actor.role == Role.MANAGER else None
            if dept is None or employee.employee_id not in dept.member_ids:
                raise AuthorizationError("You cannot view this employee's attendance")

        start = _as_optional_date(start_date)
        end = _as_optional_date(end_date)
        if start and end and end < start:
            raise ValidationError("end_date must be on or after start_date")

        return self._attendance.list_for_employee(
            employee.employee_id,
            start_date=start,
            end_date=end,
            limit=DEFAULT_HISTORY_LIMIT,
        )
