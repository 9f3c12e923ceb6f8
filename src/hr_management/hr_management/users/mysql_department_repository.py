from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .department_model import Department
from .department_repository import DepartmentRepository


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _members(cur, dept_id: int) -> frozenset:
        cur.execute("SELECT employee_id FROM department_members WHERE dept_id=%s", (dept_id,))
        return frozenset(int(r["employee_id"]) for r in fetchall(cur))

    @staticmethod
    def _to_department(row: dict, member_ids: frozenset) -> Department:
        manager_id = row.get("manager_id")
        return Department(
            dept_id=int(row["dept_id"]),
            name=row["name"],
            manager_id=int(manager_id) if manager_id is not None else None,
            member_ids=member_ids,
        )

    def list_all(self) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT dept_id, name, manager_id FROM departments ORDER BY name")
            rows = fetchall(cur)
            cur.execute("SELECT dept_id, employee_id FROM department_members")
            members: Dict[int, List[int]] = {}
            for r in fetchall(cur):
                members.setdefault(int(r["dept_id"]), []).append(int(r["employee_id"]))
            return [
                self._to_department(r, frozenset(members.get(int(r["dept_id"]), [])))
                for r in rows
            ]

    def get_by_id(self, dept_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT dept_id, name, manager_id FROM departments WHERE dept_id=%s", (dept_id,))
            row = fetchone(cur)
            if not row:
                return None
            return self._to_department(row, self._members(cur, dept_id))

    def get_managed_by(self, manager_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT dept_id, name, manager_id FROM departments WHERE manager_id=%s ORDER BY dept_id LIMIT 1",
                (manager_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return self._to_department(row, self._members(cur, int(row["dept_id"])))

    def set_manager(self, dept_id: int, manager_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE departments SET manager_id=%s WHERE dept_id=%s", (manager_id, dept_id))
            return cur.rowcount > 0

    def add_member(self, dept_id: int, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO department_members(dept_id, employee_id) VALUES(%s,%s)",
                (dept_id, employee_id),
            )
            return cur.rowcount > 0

    def remove_member(self, dept_id: int, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM department_members WHERE dept_id=%s AND employee_id=%s",
                (dept_id, employee_id),
            )
            return cur.rowcount > 0

    def get_by_name(self, name: str) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT dept_id, name, manager_id FROM departments WHERE name=%s", (name,))
            row = fetchone(cur)
            if not row:
                return None
            return self._to_department(row, self._members(cur, int(row["dept_id"])))

    def create(self, name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO departments(name) VALUES(%s)", (name,))
            return int(cur.lastrowid)

    def rename(self, dept_id: int, name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE departments SET name=%s WHERE dept_id=%s", (name, dept_id))
            return cur.rowcount > 0

    def delete(self, dept_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM departments WHERE dept_id=%s", (dept_id,))
            return cur.rowcount > 0
