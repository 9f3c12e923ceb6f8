from __future__ import annotations

from datetime import date, datetime

import pytest

from hr_management.core.constants import LATE_NOTE
from hr_management.core.enums import AttendanceStatus, EventKind
from hr_management.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def _record(world, kind, at, employee_id=10, actor_id=30, note=None):
    return world.container.attendance_service.record(
        world.actor(actor_id), employee_id=employee_id, kind=kind, at=at, note=note
    )


def test_arrival_after_cutoff_is_late(world):
    rec = _record(world, "arrival", "2024-01-03T09:15:00")

    assert rec.status == AttendanceStatus.LATE
    assert rec.note == LATE_NOTE
    assert rec.check_in_time == datetime(2024, 1, 3, 9, 15)
    assert rec.recorded_by == 30
    assert world.notifications.kinds_for(10) == [EventKind.ATTENDANCE_RECORDED]


def test_arrival_before_cutoff_is_present(world):
    rec = _record(world, "arrival", datetime(2024, 1, 3, 8, 45))
    assert rec.status == AttendanceStatus.PRESENT
    assert rec.note is None


def test_arrival_defaults_to_now(world, fixed_now):
    rec = _record(world, "arrival", None)
    assert rec.check_in_time == fixed_now
    assert rec.status == AttendanceStatus.LATE


def test_same_day_calls_share_one_record(world):
    arrival = _record(world, "arrival", datetime(2024, 1, 3, 9, 30))
    departure = _record(world, "departure", datetime(2024, 1, 3, 17, 30))

    assert arrival.attendance_id == departure.attendance_id
    assert len(world.attendance.rows) == 1
    assert departure.check_in_time == datetime(2024, 1, 3, 9, 30)
    assert departure.check_out_time == datetime(2024, 1, 3, 17, 30)
    assert departure.status == AttendanceStatus.PRESENT
    assert departure.note == LATE_NOTE


def test_departure_without_arrival_is_absent(world):
    rec = _record(world, "departure", datetime(2024, 1, 3, 17, 0))
    assert rec.status == AttendanceStatus.ABSENT
    assert rec.check_in_time is None


def test_supplied_note_overrides_late_note(world):
    rec = _record(world, "arrival", datetime(2024, 1, 3, 9, 40), note="Train strike")
    assert rec.status == AttendanceStatus.LATE
    assert rec.note == "Train strike"


def test_existing_note_is_kept(world):
    _record(world, "departure", datetime(2024, 1, 3, 12, 0), note="Doctor in the morning")
    rec = _record(world, "arrival", datetime(2024, 1, 3, 9, 40))
    assert rec.note == "Doctor in the morning"


@pytest.mark.parametrize("actor_id", [2, 10])
def test_only_recorders_may_record(world, actor_id):
    with pytest.raises(AuthorizationError):
        _record(world, "arrival", datetime(2024, 1, 3, 8, 0), actor_id=actor_id)
    assert world.attendance.rows == {}


def test_record_validation(world):
    with pytest.raises(ValidationError):
        _record(world, "lunch", datetime(2024, 1, 3, 8, 0))
    with pytest.raises(ValidationError):
        _record(world, "arrival", "yesterday")
    with pytest.raises(NotFoundError):
        _record(world, "arrival", datetime(2024, 1, 3, 8, 0), employee_id=999)


def test_update_record_reapplies_late_rule(world):
    service = world.container.attendance_service
    rec = _record(world, "arrival", datetime(2024, 1, 3, 8, 30))

    updated = service.update_record(world.actor(1), rec.attendance_id, check_in_time="2024-01-03T09:20:00")

    assert updated.status == AttendanceStatus.LATE
    assert updated.note == LATE_NOTE
    assert world.notifications.kinds_for(10)[-1] == EventKind.ATTENDANCE_UPDATED


def test_update_record_explicit_status_and_note(world):
    service = world.container.attendance_service
    rec = _record(world, "arrival", datetime(2024, 1, 3, 8, 30))

    updated = service.update_record(world.actor(30), rec.attendance_id, status="on_leave", note="Half day")
    assert updated.status == AttendanceStatus.ON_LEAVE
    assert updated.note == "Half day"


def test_update_record_rejects_departure_before_arrival(world):
    service = world.container.attendance_service
    rec = _record(world, "arrival", datetime(2024, 1, 3, 8, 30))

    with pytest.raises(ValidationError):
        service.update_record(world.actor(1), rec.attendance_id, check_out_time=datetime(2024, 1, 3, 8, 0))
    with pytest.raises(ValidationError):
        service.update_record(world.actor(1), rec.attendance_id, status="sleeping")
    with pytest.raises(AuthorizationError):
        service.update_record(world.actor(10), rec.attendance_id, note="mine")


def test_delete_record(world):
    service = world.container.attendance_service
    rec = _record(world, "arrival", datetime(2024, 1, 3, 8, 30))

    service.delete_record(world.actor(1), rec.attendance_id)

    assert world.attendance.rows == {}
    assert world.notifications.kinds_for(10)[-1] == EventKind.ATTENDANCE_DELETED
    with pytest.raises(NotFoundError):
        service.delete_record(world.actor(1), rec.attendance_id)


def test_history_scoping(world):
    service = world.container.attendance_service
    _record(world, "arrival", datetime(2024, 1, 2, 8, 30))
    _record(world, "arrival", datetime(2024, 1, 3, 8, 30))

    own = service.history(world.actor(10), 10)
    assert [r.work_date for r in own] == [date(2024, 1, 3), date(2024, 1, 2)]
    assert len(service.history(world.actor(2), 10)) == 2
    assert len(service.history(world.actor(30), 10, start_date="2024-01-03")) == 1

    with pytest.raises(AuthorizationError):
        service.history(world.actor(3), 10)
    with pytest.raises(AuthorizationError):
        service.history(world.actor(20), 10)
    with pytest.raises(ValidationError):
        service.history(world.actor(10), 10, start_date="2024-01-05", end_date="2024-01-01")


def test_notification_failure_does_not_fail_recording(world, caplog):
    world.notifications.fail = True
    rec = _record(world, "arrival", datetime(2024, 1, 3, 8, 30))
    assert rec.status == AttendanceStatus.PRESENT
    assert "attendance_recorded event" in caplog.text
