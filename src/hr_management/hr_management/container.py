from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from flask_mail import Mail

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .attendance.sweeps import AbsenceSweeper, ReminderDispatcher
from .common.datetime_utils import local_clock
from .core.constants import DEFAULT_LEAVE_BALANCE, LATE_CUTOFF
from .database.connection import DBConfig, DatabaseConnection
from .integrations.calendar import CalendarPort, GoogleCalendarAdapter
from .integrations.events import HttpEventPublisher
from .integrations.mailer import MailSender
from .integrations.notifications import NotificationFanout, NotificationPort
from .leaves.balance import BalanceLedger
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveWorkflow
from .users.department_repository import DepartmentRepository
from .users.mysql_department_repository import MySQLDepartmentRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, DepartmentService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    departments_repo: DepartmentRepository
    leaves_repo: LeaveRepository
    attendance_repo: AttendanceRepository

    ledger: BalanceLedger
    notifications: NotificationPort
    calendar: CalendarPort

    auth_service: AuthService
    user_service: UserService
    department_service: DepartmentService
    leave_workflow: LeaveWorkflow
    attendance_service: AttendanceService
    absence_sweeper: AbsenceSweeper
    reminder_dispatcher: ReminderDispatcher


def wire_services(
    *,
    users_repo: UserRepository,
    departments_repo: DepartmentRepository,
    leaves_repo: LeaveRepository,
    attendance_repo: AttendanceRepository,
    notifications: NotificationPort,
    calendar: CalendarPort,
    conn: Optional[DatabaseConnection] = None,
    late_cutoff: time = LATE_CUTOFF,
    default_leave_balance: int = DEFAULT_LEAVE_BALANCE,
    clock=None,
) -> Container:
    """Assemble the services on top of already built repositories and ports."""
    clock_kw = {"clock": clock} if clock else {}

    ledger = BalanceLedger(users_repo)
    return Container(
        conn=conn,
        users_repo=users_repo,
        departments_repo=departments_repo,
        leaves_repo=leaves_repo,
        attendance_repo=attendance_repo,
        ledger=ledger,
        notifications=notifications,
        calendar=calendar,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, departments_repo, ledger, default_leave_balance=default_leave_balance),
        department_service=DepartmentService(departments_repo, users_repo),
        leave_workflow=LeaveWorkflow(
            leaves=leaves_repo,
            users=users_repo,
            departments=departments_repo,
            ledger=ledger,
            notifications=notifications,
            calendar=calendar,
            **clock_kw,
        ),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            departments_repo,
            notifications,
            strategy_factory=AttendanceStrategyFactory(late_cutoff=late_cutoff),
            **clock_kw,
        ),
        absence_sweeper=AbsenceSweeper(attendance_repo, users_repo, notifications, **clock_kw),
        reminder_dispatcher=ReminderDispatcher(attendance_repo, users_repo, notifications, **clock_kw),
    )


def build_container(*, db_config: dict, mail: Mail, settings) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    mailer = MailSender(
        mail,
        sender=getattr(settings, "MAIL_DEFAULT_SENDER", None),
        enabled=bool(getattr(settings, "MAIL_ENABLED", False)),
    )
    events = HttpEventPublisher(getattr(settings, "NOTIFY_URL", ""))
    calendar = GoogleCalendarAdapter(
        client_id=getattr(settings, "GOOGLE_CLIENT_ID", ""),
        client_secret=getattr(settings, "GOOGLE_CLIENT_SECRET", ""),
        timezone=getattr(settings, "APP_TIMEZONE", "Europe/Paris"),
    )

    return wire_services(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        departments_repo=MySQLDepartmentRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        notifications=NotificationFanout(mailer, events),
        calendar=calendar,
        late_cutoff=getattr(settings, "LATE_CUTOFF", LATE_CUTOFF),
        default_leave_balance=int(getattr(settings, "DEFAULT_LEAVE_BALANCE", DEFAULT_LEAVE_BALANCE)),
        clock=local_clock(getattr(settings, "APP_TIMEZONE", None)),
    )
