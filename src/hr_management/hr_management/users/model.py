from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Domain entity: Employee.

    Note: plain data object (no DB access code).
    ``calendar_token`` is the refresh token of a linked calendar account.
    """

    employee_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    dept_id: Optional[int]
    leave_balance: int
    calendar_token: Optional[str] = None
    is_active: bool = True

    @property
    def has_calendar_link(self) -> bool:
        return bool(self.calendar_token)


@dataclass(frozen=True)
class Actor:
    """The authenticated principal performing an operation."""

    employee_id: int
    role: Role
