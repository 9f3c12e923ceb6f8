from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorization."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    ASSISTANT = "assistant"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    ON_LEAVE = "on_leave"


class AttendanceAction(str, Enum):
    ARRIVAL = "arrival"
    DEPARTURE = "departure"


class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    SPECIAL = "special"
    OTHER = "other"
    PAID = "paid"
    UNPAID = "unpaid"
    FAMILY = "family"
    TRAINING = "training"


class LeaveStatus(str, Enum):
    """Leave approval lifecycle."""

    PENDING = "pending"
    MANAGER_APPROVED = "manager_approved"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class EventKind(str, Enum):
    """Real-time event names pushed to the notification service."""

    LEAVE_REQUESTED = "leave_requested"
    LEAVE_STATUS_UPDATED = "leave_status_updated"
    LEAVE_PENDING_ADMIN_APPROVAL = "leave_pending_admin_approval"
    LEAVE_CANCELED = "leave_canceled"
    ATTENDANCE_RECORDED = "attendance_recorded"
    ATTENDANCE_UPDATED = "attendance_updated"
    ATTENDANCE_DELETED = "attendance_deleted"
    ATTENDANCE_REMINDER = "attendance_reminder"
    ATTENDANCE_MARKED_ABSENT = "attendance_marked_absent"
