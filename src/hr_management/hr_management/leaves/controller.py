from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.auth import current_actor, json_body, login_required, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def _optional_int(value, name: str):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def register(app: Flask, container: Container) -> None:
    workflow = container.leave_workflow

    @app.route("/leaves", methods=["POST"], endpoint="request_leave")
    @login_required
    def request_leave():
        data = json_body()
        leave = workflow.request_leave(
            current_actor(),
            leave_type=data.get("leave_type"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            reason=data.get("reason", ""),
        )
        return jsonify(leave.to_dict()), 201

    @app.route("/leaves", methods=["GET"], endpoint="list_leaves")
    @login_required
    def list_leaves():
        leaves = workflow.list_leaves(
            current_actor(),
            status=request.args.get("status"),
            dept_id=_optional_int(request.args.get("dept_id"), "dept_id"),
        )
        return jsonify([leave.to_dict() for leave in leaves])

    @app.route("/leaves/<int:request_id>", methods=["GET"], endpoint="get_leave")
    @login_required
    def get_leave(request_id: int):
        return jsonify(workflow.get_leave(current_actor(), request_id).to_dict())

    @app.route("/leaves/<int:request_id>", methods=["PUT"], endpoint="update_leave")
    @login_required
    def update_leave(request_id: int):
        data = json_body()
        leave = workflow.update_leave(
            current_actor(),
            request_id,
            leave_type=data.get("leave_type"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            reason=data.get("reason"),
        )
        return jsonify(leave.to_dict())

    @app.route("/leaves/<int:request_id>/status", methods=["PUT"], endpoint="review_leave")
    @roles_required(Role.MANAGER, Role.ADMIN)
    def review_leave(request_id: int):
        data = json_body()
        leave = workflow.review_leave(
            current_actor(),
            request_id,
            status=data.get("status"),
            comment=data.get("comment"),
        )
        return jsonify(leave.to_dict())

    @app.route("/leaves/<int:request_id>", methods=["DELETE"], endpoint="cancel_leave")
    @login_required
    def cancel_leave(request_id: int):
        return jsonify(workflow.cancel_leave(current_actor(), request_id).to_dict())
