from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, employee_id, work_date, check_in_time, check_out_time, status, note, recorded_by"


def _to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(row["attendance_id"]),
        employee_id=int(row["employee_id"]),
        work_date=row["work_date"],
        check_in_time=row.get("check_in_time"),
        check_out_time=row.get("check_out_time"),
        status=AttendanceStatus(row["status"]),
        note=row.get("note"),
        recorded_by=row.get("recorded_by"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            row = fetchone(cur)
            return _to_record(row) if row else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def get_or_create(
        self,
        employee_id: int,
        work_date: date,
        *,
        recorded_by: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Tuple[AttendanceRecord, bool]:
        with db_cursor(self._conn_factory) as (_, cur):
            # The (employee_id, work_date) unique key makes concurrent creations collapse into one row.
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(employee_id, work_date, status, note, recorded_by)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(employee_id), work_date, AttendanceStatus.ABSENT.value, note, recorded_by),
            )
            created = cur.rowcount == 1
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            return _to_record(fetchone(cur)), created

    def update_record(
        self,
        attendance_id: int,
        *,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
        status: AttendanceStatus,
        note: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_in_time=%s, check_out_time=%s, status=%s, note=%s
                WHERE attendance_id=%s
                """,
                (check_in_time, check_out_time, status.value, note, int(attendance_id)),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE work_date=%s ORDER BY employee_id",
                (work_date,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceRecord]:
        where = ["employee_id=%s"]
        params: list = [int(employee_id)]
        if start_date:
            where.append("work_date >= %s")
            params.append(start_date)
        if end_date:
            where.append("work_date <= %s")
            params.append(end_date)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {" AND ".join(where)}
                ORDER BY work_date DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def mark_absent(self, employee_id: int, work_date: date, note: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO attendance_records(employee_id, work_date, status, note)
                VALUES(%s,%s,%s,%s)
                """,
                (int(employee_id), work_date, AttendanceStatus.ABSENT.value, note),
            )
            if cur.rowcount == 1:
                return True
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, note=%s
                WHERE employee_id=%s AND work_date=%s AND check_in_time IS NULL
                """,
                (AttendanceStatus.ABSENT.value, note, int(employee_id), work_date),
            )
            return False
