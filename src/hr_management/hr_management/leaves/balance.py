from __future__ import annotations

import logging

from ..core.constants import BALANCE_CONSUMING_TYPES
from ..core.enums import LeaveType
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


class BalanceLedger:
    """Remaining paid-leave days per employee.

    No lower bound is enforced here; callers check ``has_sufficient_balance``
    before debiting.
    """

    def __init__(self, users: UserRepository):
        self._users = users

    @staticmethod
    def charge_for(leave_type: LeaveType, days: int) -> int:
        if leave_type not in BALANCE_CONSUMING_TYPES:
            return 0
        return max(int(days), 0)

    def balance_of(self, employee_id: int) -> int:
        employee = self._users.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee.leave_balance

    def has_sufficient_balance(self, employee_id: int, days: int, *, headroom: int = 0) -> bool:
        """``balance + headroom >= days``; zero-day charges always pass."""
        if days <= 0:
            return True
        return self.balance_of(employee_id) + headroom >= days

    def debit(self, employee_id: int, days: int) -> None:
        self._adjust(employee_id, -int(days))

    def credit(self, employee_id: int, days: int) -> None:
        self._adjust(employee_id, int(days))

    def _adjust(self, employee_id: int, delta: int) -> None:
        if delta == 0:
            return
        if not self._users.adjust_leave_balance(int(employee_id), delta):
            raise NotFoundError("Employee not found")
        logger.info("Leave balance of employee %s adjusted by %+d", employee_id, delta)

    def set_balance(self, employee_id: int, value: int) -> int:
        """Move the balance to ``value`` with one relative update; returns the delta."""
        if value is None:
            raise ValidationError("leave_balance is required")
        delta = int(value) - self.balance_of(employee_id)
        self._adjust(employee_id, delta)
        return delta
