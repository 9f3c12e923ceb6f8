from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from hr_management.attendance.model import AttendanceRecord
from hr_management.container import wire_services
from hr_management.core.enums import AttendanceStatus, LeaveStatus, Role
from hr_management.core.exceptions import DependencyFailure, InsufficientBalanceError
from hr_management.leaves.model import LeaveRequest
from hr_management.users.department_model import Department
from hr_management.users.model import Actor, Employee


@dataclass
class InMemoryUsers:
    users_by_id: dict[int, Employee] = field(default_factory=dict)

    def add(self, employee_id: int, *, role: Role = Role.EMPLOYEE, dept_id=None, balance: int = 25, **kw) -> Employee:
        emp = Employee(
            employee_id=employee_id,
            full_name=kw.pop("full_name", f"Employee {employee_id}"),
            email=kw.pop("email", f"e{employee_id}@example.com"),
            password_hash=kw.pop("password_hash", generate_password_hash("secret123")),
            role=role,
            dept_id=dept_id,
            leave_balance=balance,
            **kw,
        )
        self.users_by_id[employee_id] = emp
        return emp

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self.users_by_id.get(int(employee_id))

    def get_by_email(self, email: str) -> Optional[Employee]:
        email = email.strip().lower()
        return next((u for u in self.users_by_id.values() if u.email == email), None)

    def list_active(self):
        return [u for u in self.users_by_id.values() if u.is_active]

    def list_by_role(self, role: Role):
        return [u for u in self.users_by_id.values() if u.role == role and u.is_active]

    def create_user(self, *, full_name, email, password_hash, role, dept_id, leave_balance) -> int:
        new_id = max(self.users_by_id, default=0) + 1
        self.users_by_id[new_id] = Employee(new_id, full_name, email, password_hash, role, dept_id, leave_balance)
        return new_id

    def adjust_leave_balance(self, employee_id: int, delta: int) -> bool:
        emp = self.users_by_id.get(int(employee_id))
        if not emp:
            return False
        self.users_by_id[emp.employee_id] = replace(emp, leave_balance=emp.leave_balance + int(delta))
        return True

    def set_calendar_token(self, employee_id: int, token) -> bool:
        emp = self.users_by_id.get(int(employee_id))
        if not emp:
            return False
        self.users_by_id[emp.employee_id] = replace(emp, calendar_token=token)
        return True

    def set_department(self, employee_id: int, dept_id) -> bool:
        emp = self.users_by_id.get(int(employee_id))
        if not emp:
            return False
        self.users_by_id[emp.employee_id] = replace(emp, dept_id=dept_id)
        return True

    def update_profile(self, employee_id: int, *, full_name, email, role, password_hash=None) -> bool:
        emp = self.users_by_id.get(int(employee_id))
        if not emp:
            return False
        self.users_by_id[emp.employee_id] = replace(
            emp,
            full_name=full_name,
            email=email.strip().lower(),
            role=role,
            password_hash=password_hash or emp.password_hash,
        )
        return True

    def set_active(self, employee_id: int, active: bool) -> bool:
        emp = self.users_by_id.get(int(employee_id))
        if not emp:
            return False
        self.users_by_id[emp.employee_id] = replace(emp, is_active=bool(active))
        return True


@dataclass
class InMemoryDepartments:
    depts: dict[int, Department] = field(default_factory=dict)

    def add(self, dept_id: int, name: str, *, manager_id=None, member_ids=()) -> Department:
        dept = Department(dept_id, name, manager_id, frozenset(member_ids))
        self.depts[dept_id] = dept
        return dept

    def list_all(self):
        return sorted(self.depts.values(), key=lambda d: d.name)

    def get_by_id(self, dept_id: int):
        return self.depts.get(int(dept_id))

    def get_managed_by(self, manager_id: int):
        return next((d for d in self.depts.values() if d.manager_id == manager_id), None)

    def set_manager(self, dept_id: int, manager_id) -> bool:
        dept = self.depts.get(int(dept_id))
        if not dept:
            return False
        self.depts[dept.dept_id] = replace(dept, manager_id=manager_id)
        return True

    def add_member(self, dept_id: int, employee_id: int) -> bool:
        dept = self.depts[int(dept_id)]
        self.depts[dept.dept_id] = replace(dept, member_ids=dept.member_ids | {employee_id})
        return True

    def remove_member(self, dept_id: int, employee_id: int) -> bool:
        dept = self.depts[int(dept_id)]
        self.depts[dept.dept_id] = replace(dept, member_ids=dept.member_ids - {employee_id})
        return True

    def get_by_name(self, name: str):
        return next((d for d in self.depts.values() if d.name == name), None)

    def create(self, name: str) -> int:
        new_id = max(self.depts, default=0) + 100
        self.add(new_id, name)
        return new_id

    def rename(self, dept_id: int, name: str) -> bool:
        dept = self.depts.get(int(dept_id))
        if not dept:
            return False
        self.depts[dept.dept_id] = replace(dept, name=name)
        return True

    def delete(self, dept_id: int) -> bool:
        return self.depts.pop(int(dept_id), None) is not None


class InMemoryLeaves:
    """Mirrors the MySQL repository: conditional status writes, balance delta and debit guard."""

    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.rows: dict[int, LeaveRequest] = {}
        self._next_id = 1

    def create(self, *, employee_id, leave_type, start_date, end_date, working_days, reason) -> int:
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = LeaveRequest(
            request_id=rid,
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            working_days=working_days,
            reason=reason,
            status=LeaveStatus.PENDING,
            created_at=datetime(2024, 1, 1, 8, 0),
        )
        return rid

    def get_by_id(self, request_id: int):
        return self.rows.get(int(request_id))

    def list_requests(self, *, employee_id=None, dept_id=None, status=None, limit=200):
        out = []
        for r in self.rows.values():
            if employee_id is not None and r.employee_id != employee_id:
                continue
            if dept_id is not None and self._users.get_by_id(r.employee_id).dept_id != dept_id:
                continue
            if status is not None and r.status != status:
                continue
            out.append(r)
        return out[:limit]

    def _check_debit(self, r: LeaveRequest, balance_delta: int) -> None:
        balance = self._users.get_by_id(r.employee_id).leave_balance
        if balance_delta < 0 and balance < -balance_delta:
            raise InsufficientBalanceError(balance=balance, requested=-balance_delta)

    def update_details(self, request_id, *, expected_status, leave_type, start_date, end_date, working_days, reason, balance_delta=0):
        r = self.rows.get(int(request_id))
        if not r or r.status != expected_status:
            return False
        self._check_debit(r, balance_delta)
        self.rows[r.request_id] = replace(
            r,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            working_days=working_days,
            reason=reason,
        )
        if balance_delta:
            self._users.adjust_leave_balance(r.employee_id, balance_delta)
        return True

    def transition(self, request_id, *, expected_status, new_status, reviewer_id=None, comment=None, reviewed_at=None, balance_delta=0):
        r = self.rows.get(int(request_id))
        if not r or r.status != expected_status:
            return False
        self._check_debit(r, balance_delta)
        self.rows[r.request_id] = replace(
            r,
            status=new_status,
            reviewer_id=reviewer_id if reviewer_id is not None else r.reviewer_id,
            review_comment=comment if comment is not None else r.review_comment,
            reviewed_at=reviewed_at if reviewed_at is not None else r.reviewed_at,
        )
        if balance_delta:
            self._users.adjust_leave_balance(r.employee_id, balance_delta)
        return True

    def set_calendar_event(self, request_id, event_id) -> bool:
        r = self.rows.get(int(request_id))
        if not r:
            return False
        self.rows[r.request_id] = replace(r, calendar_event_id=event_id)
        return True


class InMemoryAttendance:
    def __init__(self):
        self.rows: dict[int, AttendanceRecord] = {}
        self._next_id = 1

    def _find(self, employee_id: int, work_date: date):
        return next((r for r in self.rows.values() if r.employee_id == employee_id and r.work_date == work_date), None)

    def _insert(self, employee_id, work_date, *, note=None, recorded_by=None) -> AttendanceRecord:
        rec = AttendanceRecord(self._next_id, employee_id, work_date, None, None, AttendanceStatus.ABSENT, note, recorded_by)
        self.rows[rec.attendance_id] = rec
        self._next_id += 1
        return rec

    def get_by_id(self, attendance_id):
        return self.rows.get(int(attendance_id))

    def get_for_employee_and_date(self, employee_id, work_date):
        return self._find(int(employee_id), work_date)

    def get_or_create(self, employee_id, work_date, *, recorded_by=None, note=None):
        existing = self._find(int(employee_id), work_date)
        if existing:
            return existing, False
        return self._insert(int(employee_id), work_date, note=note, recorded_by=recorded_by), True

    def update_record(self, attendance_id, *, check_in_time, check_out_time, status, note) -> bool:
        rec = self.rows.get(int(attendance_id))
        if not rec:
            return False
        self.rows[rec.attendance_id] = replace(
            rec, check_in_time=check_in_time, check_out_time=check_out_time, status=status, note=note
        )
        return True

    def delete(self, attendance_id) -> bool:
        return self.rows.pop(int(attendance_id), None) is not None

    def list_for_date(self, work_date):
        return [r for r in self.rows.values() if r.work_date == work_date]

    def list_for_employee(self, employee_id, *, start_date=None, end_date=None, limit=200):
        out = [
            r
            for r in self.rows.values()
            if r.employee_id == employee_id
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
        ]
        return sorted(out, key=lambda r: r.work_date, reverse=True)[:limit]

    def mark_absent(self, employee_id, work_date, note) -> bool:
        rec = self._find(int(employee_id), work_date)
        if rec is None:
            self._insert(int(employee_id), work_date, note=note)
            return True
        if rec.check_in_time is None:
            self.rows[rec.attendance_id] = replace(rec, status=AttendanceStatus.ABSENT, note=note)
        return False


class RecordingNotifications:
    def __init__(self):
        self.events: list[tuple[int, object, dict]] = []
        self.emails: list[tuple[object, str, str]] = []
        self.fail = False

    def notify(self, employee_id, event, payload) -> None:
        if self.fail:
            raise DependencyFailure("notification service down")
        self.events.append((employee_id, event, payload))

    def email_send(self, address, subject, html) -> bool:
        if self.fail:
            raise DependencyFailure("smtp down")
        self.emails.append((address, subject, html))
        return True

    def kinds_for(self, employee_id):
        return [kind for eid, kind, _ in self.events if eid == employee_id]


class RecordingCalendar:
    def __init__(self):
        self.created: list[int] = []
        self.updated: list[int] = []
        self.deleted: list[str] = []
        self.fail = False

    def create_event(self, employee, leave):
        if not employee.has_calendar_link:
            return None
        if self.fail:
            raise DependencyFailure("calendar down")
        self.created.append(leave.request_id)
        return f"evt-{leave.request_id}"

    def update_event(self, employee, leave) -> bool:
        if not employee.has_calendar_link or not leave.calendar_event_id:
            return False
        self.updated.append(leave.request_id)
        return True

    def delete_event(self, employee, leave) -> bool:
        if not employee.has_calendar_link or not leave.calendar_event_id:
            return False
        if self.fail:
            raise DependencyFailure("calendar down")
        self.deleted.append(leave.calendar_event_id)
        return True


@dataclass
class World:
    users: InMemoryUsers
    departments: InMemoryDepartments
    leaves: InMemoryLeaves
    attendance: InMemoryAttendance
    notifications: RecordingNotifications
    calendar: RecordingCalendar
    container: object

    def actor(self, employee_id: int) -> Actor:
        return Actor(employee_id=employee_id, role=self.users.get_by_id(employee_id).role)

    def balance(self, employee_id: int) -> int:
        return self.users.get_by_id(employee_id).leave_balance


@pytest.fixture
def fixed_now():
    # Wednesday
    return datetime(2024, 1, 3, 10, 30, 0)


@pytest.fixture
def world(fixed_now) -> World:
    """Admin 1, managers 2 (Engineering) and 3 (Sales), employees 10 (Engineering) and 20 (Sales),
    assistant 30."""
    users = InMemoryUsers()
    departments = InMemoryDepartments()
    users.add(1, role=Role.ADMIN, full_name="Alice Admin")
    users.add(2, role=Role.MANAGER, dept_id=100, full_name="Marc Manager")
    users.add(3, role=Role.MANAGER, dept_id=200, full_name="Sara Sales")
    users.add(10, role=Role.EMPLOYEE, dept_id=100, balance=10, full_name="Eve Engineer", calendar_token="refresh-10")
    users.add(20, role=Role.EMPLOYEE, dept_id=200, balance=10, full_name="Sam Seller")
    users.add(30, role=Role.ASSISTANT, full_name="Ann Assistant")
    departments.add(100, "Engineering", manager_id=2, member_ids={2, 10})
    departments.add(200, "Sales", manager_id=3, member_ids={3, 20})

    leaves = InMemoryLeaves(users)
    attendance = InMemoryAttendance()
    notifications = RecordingNotifications()
    calendar = RecordingCalendar()
    container = wire_services(
        users_repo=users,
        departments_repo=departments,
        leaves_repo=leaves,
        attendance_repo=attendance,
        notifications=notifications,
        calendar=calendar,
        clock=lambda: fixed_now,
    )
    return World(users, departments, leaves, attendance, notifications, calendar, container)
