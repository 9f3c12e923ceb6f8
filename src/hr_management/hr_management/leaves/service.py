from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date, working_days_between
from ..common.validators import require_enum, require_non_empty
from ..core.enums import EventKind, LeaveStatus, LeaveType, Role
from ..core.exceptions import (
    AuthorizationError,
    DependencyFailure,
    InsufficientBalanceError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..integrations.calendar import CalendarPort
from ..integrations.notifications import (
    NotificationPort,
    new_request_email,
    pending_admin_email,
    status_update_email,
)
from ..users.department_repository import DepartmentRepository
from ..users.model import Actor, Employee
from ..users.repository import UserRepository
from .balance import BalanceLedger
from .model import LeaveRequest
from .policy import can_transition, check_review, parse_review_target
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


def _as_date(value, field_name: str) -> date:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(str(value))


class LeaveWorkflow:
    """Use cases of the leave request lifecycle.

    pending -> manager_approved -> approved, pending|manager_approved -> rejected,
    and cancellation of anything not yet rejected. Status and balance are written
    together by the repository; calendar, e-mail and events follow the commit and
    their failures are only logged.
    """

    def __init__(
        self,
        *,
        leaves: LeaveRepository,
        users: UserRepository,
        departments: DepartmentRepository,
        ledger: BalanceLedger,
        notifications: NotificationPort,
        calendar: CalendarPort,
        clock: Callable[[], datetime] = now_local,
    ):
        self._leaves = leaves
        self._users = users
        self._departments = departments
        self._ledger = ledger
        self._notifications = notifications
        self._calendar = calendar
        self._clock = clock

    # ---- lookups ----
    def _employee(self, employee_id: int) -> Employee:
        employee = self._users.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _leave(self, request_id: int) -> LeaveRequest:
        leave = self._leaves.get_by_id(int(request_id))
        if not leave:
            raise NotFoundError("Leave request not found")
        return leave

    def _leads_department_of(self, actor: Actor, employee: Employee) -> bool:
        if actor.role != Role.MANAGER or employee.dept_id is None:
            return False
        dept = self._departments.get_managed_by(actor.employee_id)
        return dept is not None and dept.dept_id == employee.dept_id

    # ---- side effects ----
    def _best_effort(self, label: str, fn, *args):
        try:
            return fn(*args)
        except DependencyFailure as e:
            logger.warning("%s failed: %s", label, e)
            return None

    def _notify(self, employee_id: int, kind: EventKind, message: str, leave: LeaveRequest) -> None:
        self._best_effort(
            f"{kind.value} event",
            self._notifications.notify,
            employee_id,
            kind,
            {"message": message, "leave": leave.to_dict()},
        )

    def _email(self, address, subject_and_html) -> None:
        subject, html = subject_and_html
        self._best_effort(f"mail {subject!r}", self._notifications.email_send, address, subject, html)

    def _drop_calendar_event(self, employee: Employee, leave: LeaveRequest) -> LeaveRequest:
        if not leave.calendar_event_id or not employee.has_calendar_link:
            return leave
        if self._best_effort("calendar delete", self._calendar.delete_event, employee, leave):
            self._leaves.set_calendar_event(leave.request_id, None)
            return replace(leave, calendar_event_id=None)
        return leave

    # ---- validation ----
    def _check_balance(self, employee: Employee, leave_type: LeaveType, working_days: int, *, headroom: int = 0) -> None:
        charge = self._ledger.charge_for(leave_type, working_days)
        if not self._ledger.has_sufficient_balance(employee.employee_id, charge, headroom=headroom):
            raise InsufficientBalanceError(balance=self._ledger.balance_of(employee.employee_id), requested=working_days)

    @staticmethod
    def _validated_period(start_date, end_date) -> tuple:
        start = _as_date(start_date, "start_date")
        end = _as_date(end_date, "end_date")
        if end < start:
            raise ValidationError("end_date must be on or after start_date")
        return start, end

    # ---- use cases ----
    def request_leave(
        self,
        actor: Actor,
        *,
        leave_type,
        start_date,
        end_date,
        reason: str,
    ) -> LeaveRequest:
        reason = require_non_empty(reason, "reason")
        start, end = self._validated_period(start_date, end_date)
        leave_type = require_enum(LeaveType, leave_type, "leave_type")

        working_days = working_days_between(start, end)
        if working_days == 0:
            logger.warning("Leave request of employee %s covers no working day (%s..%s)", actor.employee_id, start, end)

        employee = self._employee(actor.employee_id)
        self._check_balance(employee, leave_type, working_days)

        request_id = self._leaves.create(
            employee_id=employee.employee_id,
            leave_type=leave_type,
            start_date=start,
            end_date=end,
            working_days=working_days,
            reason=reason,
        )
        leave = self._leave(request_id)
        logger.info("Leave request %s created by employee %s", request_id, employee.employee_id)

        manager = self._department_manager(employee)
        if manager:
            self._email(manager.email, new_request_email(employee, leave))
        self._notify(employee.employee_id, EventKind.LEAVE_REQUESTED, "Your leave request has been created", leave)
        return leave

    def _department_manager(self, employee: Employee) -> Optional[Employee]:
        if employee.dept_id is None:
            return None
        dept = self._departments.get_by_id(employee.dept_id)
        if not dept or dept.manager_id is None:
            return None
        return self._users.get_by_id(dept.manager_id)

    def update_leave(
        self,
        actor: Actor,
        request_id: int,
        *,
        leave_type=None,
        start_date=None,
        end_date=None,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        """Edit type, dates or reason; omitted fields keep their value.

        Owners may edit only pending requests; administrators may also correct
        manager-approved and approved ones.
        """
        leave = self._leave(request_id)
        is_owner = leave.employee_id == actor.employee_id
        if not is_owner and actor.role != Role.ADMIN:
            raise AuthorizationError("You can only edit your own leave requests")

        if leave.status in {LeaveStatus.REJECTED, LeaveStatus.CANCELLED}:
            raise InvalidStateError(f"A {leave.status.value} request cannot be edited")
        if actor.role != Role.ADMIN and leave.status != LeaveStatus.PENDING:
            raise InvalidStateError("Only pending requests can be edited")

        new_reason = leave.reason if reason is None else require_non_empty(reason, "reason")
        start, end = self._validated_period(
            leave.start_date if start_date is None else start_date,
            leave.end_date if end_date is None else end_date,
        )
        new_type = leave.leave_type if leave_type is None else require_enum(LeaveType, leave_type, "leave_type")
        working_days = working_days_between(start, end)
        if working_days == 0:
            logger.warning("Leave request %s edited to cover no working day (%s..%s)", leave.request_id, start, end)

        employee = self._employee(leave.employee_id)
        old_charge = 0
        if leave.status == LeaveStatus.APPROVED:
            old_charge = self._ledger.charge_for(leave.leave_type, leave.working_days)
        self._check_balance(employee, new_type, working_days, headroom=old_charge)

        balance_delta = 0
        if leave.status == LeaveStatus.APPROVED:
            balance_delta = old_charge - self._ledger.charge_for(new_type, working_days)

        ok = self._leaves.update_details(
            leave.request_id,
            expected_status=leave.status,
            leave_type=new_type,
            start_date=start,
            end_date=end,
            working_days=working_days,
            reason=new_reason,
            balance_delta=balance_delta,
        )
        if not ok:
            raise InvalidStateError("The request changed in the meantime, reload it and retry")

        updated = self._leave(leave.request_id)
        if updated.status == LeaveStatus.APPROVED and updated.calendar_event_id:
            self._best_effort("calendar update", self._calendar.update_event, employee, updated)
        return updated

    def review_leave(self, actor: Actor, request_id: int, *, status, comment: Optional[str] = None) -> LeaveRequest:
        target = parse_review_target(status)
        leave = self._leave(request_id)
        employee = self._employee(leave.employee_id)

        check_review(actor.role, leave.status, target, self._leads_department_of(actor, employee))

        comment = (comment or "").strip() or None
        if target == LeaveStatus.REJECTED and not comment:
            raise ValidationError("A comment is required to reject a request")

        balance_delta = 0
        if target == LeaveStatus.APPROVED:
            charge = self._ledger.charge_for(leave.leave_type, leave.working_days)
            self._check_balance(employee, leave.leave_type, leave.working_days)
            balance_delta = -charge

        ok = self._leaves.transition(
            leave.request_id,
            expected_status=leave.status,
            new_status=target,
            reviewer_id=actor.employee_id,
            comment=comment,
            reviewed_at=self._clock(),
            balance_delta=balance_delta,
        )
        if not ok:
            raise InvalidStateError("The request changed in the meantime, reload it and retry")

        updated = self._leave(leave.request_id)
        logger.info(
            "Leave request %s moved %s -> %s by %s %s",
            updated.request_id,
            leave.status.value,
            target.value,
            actor.role.value,
            actor.employee_id,
        )

        if target == LeaveStatus.APPROVED:
            event_id = self._best_effort("calendar create", self._calendar.create_event, employee, updated)
            if event_id:
                self._leaves.set_calendar_event(updated.request_id, event_id)
                updated = replace(updated, calendar_event_id=event_id)
        elif target == LeaveStatus.REJECTED:
            updated = self._drop_calendar_event(employee, updated)

        self._email(employee.email, status_update_email(employee, updated, comment))
        self._notify(
            employee.employee_id,
            EventKind.LEAVE_STATUS_UPDATED,
            f"Your leave request is now {target.value}",
            updated,
        )

        if target == LeaveStatus.MANAGER_APPROVED:
            admins = self._users.list_by_role(Role.ADMIN)
            if admins:
                self._email([a.email for a in admins], pending_admin_email(employee, updated))
            for admin in admins:
                self._notify(
                    admin.employee_id,
                    EventKind.LEAVE_PENDING_ADMIN_APPROVAL,
                    f"Leave request of {employee.full_name} awaits final approval",
                    updated,
                )
        return updated

    def cancel_leave(self, actor: Actor, request_id: int) -> LeaveRequest:
        leave = self._leave(request_id)
        is_owner = leave.employee_id == actor.employee_id
        if not is_owner and actor.role != Role.ADMIN:
            raise AuthorizationError("You can only cancel your own leave requests")
        if not can_transition(actor.role, leave.status, LeaveStatus.CANCELLED, is_owner, False):
            raise InvalidStateError(f"A {leave.status.value} request cannot be cancelled")

        credit = 0
        if leave.status == LeaveStatus.APPROVED:
            credit = self._ledger.charge_for(leave.leave_type, leave.working_days)

        ok = self._leaves.transition(
            leave.request_id,
            expected_status=leave.status,
            new_status=LeaveStatus.CANCELLED,
            balance_delta=credit,
        )
        if not ok:
            raise InvalidStateError("The request changed in the meantime, reload it and retry")

        updated = self._leave(leave.request_id)
        logger.info("Leave request %s cancelled by %s (credit %s)", updated.request_id, actor.employee_id, credit)

        employee = self._employee(leave.employee_id)
        if leave.status == LeaveStatus.APPROVED:
            updated = self._drop_calendar_event(employee, updated)

        self._notify(employee.employee_id, EventKind.LEAVE_CANCELED, "Your leave request has been cancelled", updated)
        return updated

    def get_leave(self, actor: Actor, request_id: int) -> LeaveRequest:
        leave = self._leave(request_id)
        if leave.employee_id == actor.employee_id or actor.role in {Role.ADMIN, Role.ASSISTANT}:
            return leave
        if self._leads_department_of(actor, self._employee(leave.employee_id)):
            return leave
        raise AuthorizationError("You cannot view this leave request")

    def list_leaves(self, actor: Actor, *, status=None, dept_id: Optional[int] = None) -> Sequence[LeaveRequest]:
        status_filter = None if status in (None, "") else require_enum(LeaveStatus, status, "status")

        if actor.role in {Role.ADMIN, Role.ASSISTANT}:
            return self._leaves.list_requests(dept_id=dept_id, status=status_filter)

        if actor.role == Role.MANAGER:
            dept = self._departments.get_managed_by(actor.employee_id)
            if dept is not None:
                if dept_id is not None and int(dept_id) != dept.dept_id:
                    raise AuthorizationError("You can only list requests of your own department")
                return self._leaves.list_requests(dept_id=dept.dept_id, status=status_filter)

        return self._leaves.list_requests(employee_id=actor.employee_id, status=status_filter)
