"""Who may move a leave request from one status to another."""

from __future__ import annotations

from ..core.enums import LeaveStatus, Role
from ..core.exceptions import AuthorizationError, InvalidStateError, ValidationError

REVIEWABLE = frozenset({LeaveStatus.PENDING, LeaveStatus.MANAGER_APPROVED})
CANCELLABLE = frozenset({LeaveStatus.PENDING, LeaveStatus.MANAGER_APPROVED, LeaveStatus.APPROVED})
FINAL = frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED})
REVIEW_TARGETS = frozenset({LeaveStatus.MANAGER_APPROVED, LeaveStatus.APPROVED, LeaveStatus.REJECTED})


def can_transition(
    role: Role,
    from_state: LeaveStatus,
    to_state: LeaveStatus,
    is_owner: bool,
    is_department_match: bool,
) -> bool:
    if to_state == LeaveStatus.CANCELLED:
        return from_state in CANCELLABLE and (is_owner or role == Role.ADMIN)

    if to_state == LeaveStatus.MANAGER_APPROVED:
        return role == Role.MANAGER and is_department_match and from_state == LeaveStatus.PENDING

    if to_state == LeaveStatus.APPROVED:
        return role == Role.ADMIN and from_state == LeaveStatus.MANAGER_APPROVED

    if to_state == LeaveStatus.REJECTED:
        if from_state not in REVIEWABLE:
            return False
        return role == Role.ADMIN or (role == Role.MANAGER and is_department_match)

    return False


def check_review(role: Role, from_state: LeaveStatus, to_state: LeaveStatus, is_department_match: bool) -> None:
    """Raise the error a reviewer gets for an illegal review; return on success.

    Order: finalized request, reviewer role, department scope, transition legality.
    """
    if from_state in FINAL:
        raise InvalidStateError("Request already finalized")

    if role not in {Role.ADMIN, Role.MANAGER}:
        raise AuthorizationError("Only managers and administrators can review leave requests")
    if role == Role.MANAGER and not is_department_match:
        raise AuthorizationError("You can only review requests from your own department")

    if not can_transition(role, from_state, to_state, is_owner=False, is_department_match=is_department_match):
        if role == Role.MANAGER and to_state == LeaveStatus.APPROVED:
            raise InvalidStateError("Only an administrator can grant final approval")
        if role == Role.ADMIN and to_state == LeaveStatus.APPROVED:
            raise InvalidStateError("The request must be approved by the department manager first")
        raise InvalidStateError(f"Cannot move a {from_state.value} request to {to_state.value}")


def parse_review_target(value) -> LeaveStatus:
    try:
        target = value if isinstance(value, LeaveStatus) else LeaveStatus(str(value or "").strip())
    except ValueError:
        target = None
    if target not in REVIEW_TARGETS:
        allowed = ", ".join(sorted(s.value for s in REVIEW_TARGETS))
        raise ValidationError(f"status must be one of: {allowed}")
    return target
