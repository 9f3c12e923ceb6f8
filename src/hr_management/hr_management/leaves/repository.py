from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest


class LeaveRepository(Protocol):
    """Persistence of leave requests.

    ``transition`` and ``update_details`` are conditional on the stored status and
    apply ``balance_delta`` to the owner's ``leave_balance`` in the same transaction.
    Both return False (and change nothing) when the status no longer matches, and
    raise ``InsufficientBalanceError`` (changing nothing) when a negative delta
    exceeds the stored balance.
    """

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
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        employee_id: Optional[int] = None,
        dept_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

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
        raise NotImplementedError

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
        raise NotImplementedError

    def set_calendar_event(self, request_id: int, event_id: Optional[str]) -> bool:
        raise NotImplementedError
