from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import InsufficientBalanceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRepository

_COLUMNS = """
    r.request_id, r.employee_id, r.leave_type, r.start_date, r.end_date, r.working_days,
    r.reason, r.status, r.reviewer_id, r.review_comment, r.reviewed_at,
    r.calendar_event_id, r.created_at
"""


def _to_leave(row: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(row["request_id"]),
        employee_id=int(row["employee_id"]),
        leave_type=LeaveType(row["leave_type"]),
        start_date=row["start_date"],
        end_date=row["end_date"],
        working_days=int(row["working_days"]),
        reason=row["reason"],
        status=LeaveStatus(row["status"]),
        created_at=row["created_at"],
        reviewer_id=row.get("reviewer_id"),
        review_comment=row.get("review_comment"),
        reviewed_at=row.get("reviewed_at"),
        calendar_event_id=row.get("calendar_event_id"),
    )


def _apply_balance(cur, request_id: int, delta: int) -> None:
    """Move the owner's balance by ``delta``; a debit never takes it below zero.

    Raising here rolls back the status write of the same transaction.
    """
    if not delta:
        return
    sql = """
        UPDATE employees e
        JOIN leave_requests r ON r.employee_id = e.employee_id
        SET e.leave_balance = e.leave_balance + %s
        WHERE r.request_id = %s
    """
    params = [int(delta), int(request_id)]
    if delta < 0:
        sql += " AND e.leave_balance >= %s"
        params.append(-int(delta))
    cur.execute(sql, tuple(params))
    if delta < 0 and cur.rowcount <= 0:
        cur.execute(
            """
            SELECT e.leave_balance FROM employees e
            JOIN leave_requests r ON r.employee_id = e.employee_id
            WHERE r.request_id = %s
            """,
            (int(request_id),),
        )
        row = fetchone(cur)
        raise InsufficientBalanceError(balance=int(row["leave_balance"]) if row else 0, requested=-int(delta))


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        working_days: int,
        reason: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(employee_id, leave_type, start_date, end_date, working_days, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    leave_type.value,
                    start_date,
                    end_date,
                    int(working_days),
                    reason,
                    LeaveStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests r WHERE r.request_id=%s",
                (int(request_id),),
            )
            row = fetchone(cur)
            return _to_leave(row) if row else None

    def list_requests(
        self,
        *,
        employee_id: Optional[int] = None,
        dept_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        where = []
        params: list = []
        if employee_id is not None:
            where.append("r.employee_id=%s")
            params.append(int(employee_id))
        if dept_id is not None:
            where.append("e.dept_id=%s")
            params.append(int(dept_id))
        if status is not None:
            where.append("r.status=%s")
            params.append(status.value)

        sql = f"""
            SELECT {_COLUMNS}
            FROM leave_requests r
            JOIN employees e ON e.employee_id = r.employee_id
        """
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY r.created_at DESC, r.request_id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_leave(r) for r in fetchall(cur)]

    def update_details(
        self,
        request_id: int,
        *,
        expected_status: LeaveStatus,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        working_days: int,
        reason: str,
        balance_delta: int = 0,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET leave_type=%s, start_date=%s, end_date=%s, working_days=%s, reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    leave_type.value,
                    start_date,
                    end_date,
                    int(working_days),
                    reason,
                    int(request_id),
                    expected_status.value,
                ),
            )
            if cur.rowcount <= 0:
                return False
            _apply_balance(cur, request_id, balance_delta)
            return True

    def transition(
        self,
        request_id: int,
        *,
        expected_status: LeaveStatus,
        new_status: LeaveStatus,
        reviewer_id: Optional[int] = None,
        comment: Optional[str] = None,
        reviewed_at: Optional[datetime] = None,
        balance_delta: int = 0,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s,
                    reviewer_id=COALESCE(%s, reviewer_id),
                    review_comment=COALESCE(%s, review_comment),
                    reviewed_at=COALESCE(%s, reviewed_at)
                WHERE request_id=%s AND status=%s
                """,
                (
                    new_status.value,
                    reviewer_id,
                    comment,
                    reviewed_at,
                    int(request_id),
                    expected_status.value,
                ),
            )
            if cur.rowcount <= 0:
                return False
            _apply_balance(cur, request_id, balance_delta)
            return True

    def set_calendar_event(self, request_id: int, event_id: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leave_requests SET calendar_event_id=%s WHERE request_id=%s",
                (event_id, int(request_id)),
            )
            return cur.rowcount > 0
