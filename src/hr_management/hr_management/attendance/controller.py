from __future__ import annotations

import click
from flask import Flask, jsonify, request

from ..common.auth import current_actor, json_body, login_required, roles_required
from ..common.datetime_utils import parse_iso_datetime
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/attendance", methods=["POST"], endpoint="record_attendance")
    @roles_required(Role.ADMIN, Role.ASSISTANT)
    def record_attendance():
        data = json_body()
        employee_id = data.get("employee_id")
        if employee_id in (None, ""):
            raise ValidationError("employee_id is required")
        try:
            employee_id = int(employee_id)
        except (TypeError, ValueError):
            raise ValidationError("employee_id must be an integer")

        record = service.record(
            current_actor(),
            employee_id=employee_id,
            kind=data.get("type"),
            at=data.get("at"),
            note=data.get("note"),
        )
        return jsonify(record.to_dict())

    @app.route("/attendance/<int:attendance_id>", methods=["PUT"], endpoint="update_attendance")
    @roles_required(Role.ADMIN, Role.ASSISTANT)
    def update_attendance(attendance_id: int):
        data = json_body()
        record = service.update_record(
            current_actor(),
            attendance_id,
            check_in_time=data.get("check_in_time"),
            check_out_time=data.get("check_out_time"),
            status=data.get("status"),
            note=data.get("note"),
        )
        return jsonify(record.to_dict())

    @app.route("/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="delete_attendance")
    @roles_required(Role.ADMIN, Role.ASSISTANT)
    def delete_attendance(attendance_id: int):
        service.delete_record(current_actor(), attendance_id)
        return jsonify({"message": "Attendance record deleted"})

    @app.route("/attendance/employees/<int:employee_id>", methods=["GET"], endpoint="attendance_history")
    @login_required
    def attendance_history(employee_id: int):
        records = service.history(
            current_actor(),
            employee_id,
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return jsonify([r.to_dict() for r in records])

    # Cron: 0 23 * * 1-5  flask mark-absences
    @app.cli.command("mark-absences")
    @click.option("--as-of", "as_of", default=None, help="ISO timestamp to sweep instead of now.")
    def mark_absences(as_of):
        """Mark employees without a check-in today as absent."""
        writes = container.absence_sweeper.run(parse_iso_datetime(as_of))
        click.echo(f"{len(writes)} employee(s) marked absent")

    # Cron: 0 10 * * 1-5  flask send-reminders
    @app.cli.command("send-reminders")
    @click.option("--as-of", "as_of", default=None, help="ISO timestamp to check instead of now.")
    def send_reminders(as_of):
        """Remind employees who have not checked in yet."""
        targets = container.reminder_dispatcher.run(parse_iso_datetime(as_of))
        click.echo(f"{len(targets)} reminder(s) sent")
