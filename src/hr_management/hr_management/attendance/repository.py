from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """At most one record per (employee, work_date)."""

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_or_create(
        self,
        employee_id: int,
        work_date: date,
        *,
        recorded_by: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Tuple[AttendanceRecord, bool]:
        """Return the day's record and whether it was created by this call."""

        raise NotImplementedError

    def update_record(
        self,
        attendance_id: int,
        *,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def mark_absent(self, employee_id: int, work_date: date, note: str) -> bool:
        """Make the day's record ``absent`` unless it has a check-in.

        Returns True when the record did not exist and was created.
        """

        raise NotImplementedError
