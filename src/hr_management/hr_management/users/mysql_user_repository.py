from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import UserRepository

_COLUMNS = "employee_id, full_name, email, password_hash, role, dept_id, leave_balance, calendar_token, is_active"


def _to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["employee_id"]),
        full_name=row["full_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        dept_id=row.get("dept_id"),
        leave_balance=int(row.get("leave_balance") or 0),
        calendar_token=row.get("calendar_token"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (employee_id,))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def get_by_email(self, email: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE email=%s", (email.strip().lower(),))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def list_active(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE is_active=1 ORDER BY employee_id")
            return [_to_employee(r) for r in fetchall(cur)]

    def list_by_role(self, role: Role) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE role=%s AND is_active=1 ORDER BY employee_id",
                (role.value,),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        full_name: str,
        email: str,
        password_hash: str,
        role: Role,
        dept_id: Optional[int],
        leave_balance: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(full_name, email, password_hash, role, dept_id, leave_balance, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (full_name, email.strip().lower(), password_hash, role.value, dept_id, leave_balance),
            )
            return int(cur.lastrowid)

    def adjust_leave_balance(self, employee_id: int, delta: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET leave_balance = leave_balance + %s WHERE employee_id=%s",
                (int(delta), employee_id),
            )
            return cur.rowcount > 0

    def set_calendar_token(self, employee_id: int, token: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET calendar_token=%s WHERE employee_id=%s",
                (token, employee_id),
            )
            return cur.rowcount > 0

    def set_department(self, employee_id: int, dept_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET dept_id=%s WHERE employee_id=%s",
                (dept_id, employee_id),
            )
            return cur.rowcount > 0

    def update_profile(
        self,
        employee_id: int,
        *,
        full_name: str,
        email: str,
        role: Role,
        password_hash: Optional[str] = None,
    ) -> bool:
        sets = ["full_name=%s", "email=%s", "role=%s"]
        params = [full_name, email.strip().lower(), role.value]
        if password_hash:
            sets.append("password_hash=%s")
            params.append(password_hash)
        params.append(employee_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE employees SET {', '.join(sets)} WHERE employee_id=%s", tuple(params))
            return cur.rowcount > 0

    def set_active(self, employee_id: int, active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET is_active=%s WHERE employee_id=%s",
                (1 if active else 0, employee_id),
            )
            return cur.rowcount > 0
