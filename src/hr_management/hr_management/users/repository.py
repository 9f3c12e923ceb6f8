from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Employee


class UserRepository(Protocol):
    """Repository interface for Employee.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_active(self) -> Sequence[Employee]:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[Employee]:
        raise NotImplementedError

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
        raise NotImplementedError

    def adjust_leave_balance(self, employee_id: int, delta: int) -> bool:
        """Relative update (``balance = balance + delta``)."""

        raise NotImplementedError

    def set_calendar_token(self, employee_id: int, token: Optional[str]) -> bool:
        raise NotImplementedError

    def set_department(self, employee_id: int, dept_id: Optional[int]) -> bool:
        raise NotImplementedError

    def update_profile(
        self,
        employee_id: int,
        *,
        full_name: str,
        email: str,
        role: Role,
        password_hash: Optional[str] = None,
    ) -> bool:
        """Overwrite the profile fields; the password only when a new hash is given."""

        raise NotImplementedError

    def set_active(self, employee_id: int, active: bool) -> bool:
        raise NotImplementedError
