from __future__ import annotations

import logging
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_enum, require_min_length, require_non_empty
from ..core.constants import DEFAULT_LEAVE_BALANCE
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..leaves.balance import BalanceLedger
from .department_model import Department
from .department_repository import DepartmentRepository
from .model import Actor, Employee
from .repository import UserRepository

logger = logging.getLogger(__name__)


def _require_admin(actor: Actor) -> None:
    if actor.role != Role.ADMIN:
        raise AuthorizationError("Administrator access required")


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> Employee:
        email = (email or "").strip().lower()
        if not email or not password:
            raise AuthenticationError("Invalid email or password")

        user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")
        return user


class UserService:
    """Use case: manage employee accounts (admin) and the caller's own profile."""

    def __init__(
        self,
        users: UserRepository,
        departments: DepartmentRepository,
        ledger: BalanceLedger,
        *,
        default_leave_balance: int = DEFAULT_LEAVE_BALANCE,
    ):
        self._users = users
        self._departments = departments
        self._ledger = ledger
        self._default_leave_balance = int(default_leave_balance)

    def _step_down(self, employee_id: int) -> None:
        led = self._departments.get_managed_by(employee_id)
        if led:
            self._departments.set_manager(led.dept_id, None)
            logger.info("Employee %s no longer manages department %s", employee_id, led.dept_id)

    def get(self, employee_id: int) -> Employee:
        user = self._users.get_by_id(int(employee_id))
        if not user:
            raise NotFoundError("Employee not found")
        return user

    def create_account(
        self,
        actor: Actor,
        *,
        full_name: str,
        email: str,
        password: str,
        role,
        dept_id: Optional[int] = None,
    ) -> Employee:
        _require_admin(actor)
        full_name = require_non_empty(full_name, "full_name")
        email = require_non_empty(email, "email").lower()
        require_min_length(password, "password", 6)
        role = require_enum(Role, role, "role")

        if self._users.get_by_email(email):
            raise ValidationError("An account with this email already exists")
        if dept_id is not None:
            dept_id = int(dept_id)
            if not self._departments.get_by_id(dept_id):
                raise NotFoundError("Department not found")

        employee_id = self._users.create_user(
            full_name=full_name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            dept_id=dept_id,
            leave_balance=self._default_leave_balance,
        )
        # Membership rows and employees.dept_id must agree.
        if dept_id is not None:
            self._departments.add_member(dept_id, employee_id)
        logger.info("Account %s (%s) created by %s", employee_id, role.value, actor.employee_id)
        return self.get(employee_id)

    def update_account(
        self,
        actor: Actor,
        employee_id: int,
        *,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        role=None,
        password: Optional[str] = None,
    ) -> Employee:
        """Edit profile fields; omitted fields keep their value.

        Leaving the manager role also gives up the lead of a department.
        """
        _require_admin(actor)
        user = self.get(employee_id)

        new_name = user.full_name if full_name is None else require_non_empty(full_name, "full_name")
        new_email = user.email if email is None else require_non_empty(email, "email").lower()
        new_role = user.role if role is None else require_enum(Role, role, "role")
        password_hash = None
        if password is not None:
            require_min_length(password, "password", 6)
            password_hash = generate_password_hash(password)

        if new_email != user.email:
            other = self._users.get_by_email(new_email)
            if other and other.employee_id != user.employee_id:
                raise ValidationError("An account with this email already exists")

        self._users.update_profile(
            user.employee_id,
            full_name=new_name,
            email=new_email,
            role=new_role,
            password_hash=password_hash,
        )
        if user.role == Role.MANAGER and new_role != Role.MANAGER:
            self._step_down(user.employee_id)
        logger.info("Account %s updated by %s", user.employee_id, actor.employee_id)
        return self.get(user.employee_id)

    def set_active(self, actor: Actor, employee_id: int, active: bool) -> Employee:
        _require_admin(actor)
        user = self.get(employee_id)
        if not active and user.employee_id == actor.employee_id:
            raise ValidationError("You cannot deactivate your own account")

        self._users.set_active(user.employee_id, bool(active))
        if not active:
            self._step_down(user.employee_id)
        logger.info(
            "Account %s %s by %s",
            user.employee_id,
            "activated" if active else "deactivated",
            actor.employee_id,
        )
        return self.get(user.employee_id)

    def adjust_leave_balance(self, actor: Actor, employee_id: int, *, delta: Optional[int] = None, value: Optional[int] = None) -> Employee:
        """Add ``delta`` days to the balance, or set it to ``value``."""
        _require_admin(actor)
        self.get(employee_id)

        if (delta is None) == (value is None):
            raise ValidationError("Provide exactly one of delta or value")
        try:
            if delta is not None:
                amount = int(delta)
                if amount >= 0:
                    self._ledger.credit(employee_id, amount)
                else:
                    self._ledger.debit(employee_id, -amount)
            else:
                self._ledger.set_balance(employee_id, int(value))
        except (TypeError, ValueError):
            raise ValidationError("Balance adjustments must be whole numbers of days")
        return self.get(employee_id)

    def link_calendar(self, actor: Actor, refresh_token: str) -> Employee:
        token = require_non_empty(refresh_token, "refresh_token")
        self._users.set_calendar_token(actor.employee_id, token)
        logger.info("Calendar linked for employee %s", actor.employee_id)
        return self.get(actor.employee_id)

    def unlink_calendar(self, actor: Actor) -> Employee:
        self._users.set_calendar_token(actor.employee_id, None)
        logger.info("Calendar unlinked for employee %s", actor.employee_id)
        return self.get(actor.employee_id)


class DepartmentService:
    """Department membership and leadership.

    A department's manager is always one of its members.
    """

    def __init__(self, departments: DepartmentRepository, users: UserRepository):
        self._departments = departments
        self._users = users

    def list_all(self) -> Sequence[Department]:
        return self._departments.list_all()

    def get(self, dept_id: int) -> Department:
        dept = self._departments.get_by_id(int(dept_id))
        if not dept:
            raise NotFoundError("Department not found")
        return dept

    def _unique_name(self, name: str, *, dept_id: Optional[int] = None) -> str:
        name = require_non_empty(name, "name")
        existing = self._departments.get_by_name(name)
        if existing and existing.dept_id != dept_id:
            raise ValidationError("A department with this name already exists")
        return name

    def create_department(self, actor: Actor, name: str) -> Department:
        _require_admin(actor)
        dept_id = self._departments.create(self._unique_name(name))
        logger.info("Department %s created by %s", dept_id, actor.employee_id)
        return self.get(dept_id)

    def rename_department(self, actor: Actor, dept_id: int, name: str) -> Department:
        _require_admin(actor)
        dept = self.get(dept_id)
        self._departments.rename(dept.dept_id, self._unique_name(name, dept_id=dept.dept_id))
        return self.get(dept.dept_id)

    def delete_department(self, actor: Actor, dept_id: int) -> None:
        """Members stay employed without a department."""
        _require_admin(actor)
        dept = self.get(dept_id)
        for member_id in dept.member_ids:
            self._users.set_department(member_id, None)
        self._departments.delete(dept.dept_id)
        logger.info("Department %s deleted by %s", dept.dept_id, actor.employee_id)

    def _employee(self, employee_id: int) -> Employee:
        employee = self._users.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def add_member(self, actor: Actor, dept_id: int, employee_id: int) -> Department:
        _require_admin(actor)
        dept = self.get(dept_id)
        employee = self._employee(employee_id)

        if employee.dept_id is not None and employee.dept_id != dept.dept_id:
            self._leave_department(employee.dept_id, employee.employee_id)

        self._departments.add_member(dept.dept_id, employee.employee_id)
        self._users.set_department(employee.employee_id, dept.dept_id)
        return self.get(dept.dept_id)

    def remove_member(self, actor: Actor, dept_id: int, employee_id: int) -> Department:
        _require_admin(actor)
        dept = self.get(dept_id)
        employee = self._employee(employee_id)
        if employee.employee_id not in dept.member_ids:
            raise ValidationError("Employee is not a member of this department")

        self._leave_department(dept.dept_id, employee.employee_id)
        return self.get(dept.dept_id)

    def _leave_department(self, dept_id: int, employee_id: int) -> None:
        dept = self._departments.get_by_id(dept_id)
        if dept and dept.manager_id == employee_id:
            self._departments.set_manager(dept_id, None)
        self._departments.remove_member(dept_id, employee_id)
        self._users.set_department(employee_id, None)

    def assign_manager(self, actor: Actor, dept_id: int, manager_id: Optional[int]) -> Department:
        _require_admin(actor)
        dept = self.get(dept_id)

        if manager_id is None:
            self._departments.set_manager(dept.dept_id, None)
            return self.get(dept.dept_id)

        manager = self._employee(manager_id)
        if manager.role != Role.MANAGER:
            raise ValidationError("Only employees with the manager role can lead a department")

        led = self._departments.get_managed_by(manager.employee_id)
        if led and led.dept_id != dept.dept_id:
            raise ValidationError("This manager already leads another department")

        if manager.employee_id not in dept.member_ids:
            self.add_member(actor, dept.dept_id, manager.employee_id)
        self._departments.set_manager(dept.dept_id, manager.employee_id)
        logger.info("Employee %s now manages department %s", manager.employee_id, dept.dept_id)
        return self.get(dept.dept_id)
