from __future__ import annotations

from flask import Flask, jsonify, session

from ..common.auth import current_actor, json_body, login_required, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from .department_model import Department
from .model import Employee


def employee_json(e: Employee) -> dict:
    return {
        "employee_id": e.employee_id,
        "full_name": e.full_name,
        "email": e.email,
        "role": e.role.value,
        "dept_id": e.dept_id,
        "leave_balance": e.leave_balance,
        "calendar_linked": e.has_calendar_link,
        "is_active": e.is_active,
    }


def department_json(d: Department) -> dict:
    return {
        "dept_id": d.dept_id,
        "name": d.name,
        "manager_id": d.manager_id,
        "member_ids": sorted(d.member_ids),
    }


def _int_field(data: dict, name: str, *, required: bool = True):
    value = data.get(name)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{name} is required")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def register(app: Flask, container: Container) -> None:
    @app.route("/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session["user_id"] = user.employee_id
        session["role"] = user.role.value
        session["name"] = user.full_name
        return jsonify({"user": employee_json(user)})

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"message": "Signed out"})

    @app.route("/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return jsonify(employee_json(container.user_service.get(current_actor().employee_id)))

    @app.route("/me/calendar", methods=["PUT"], endpoint="link_calendar")
    @login_required
    def link_calendar():
        user = container.user_service.link_calendar(current_actor(), json_body().get("refresh_token", ""))
        return jsonify(employee_json(user))

    @app.route("/me/calendar", methods=["DELETE"], endpoint="unlink_calendar")
    @login_required
    def unlink_calendar():
        return jsonify(employee_json(container.user_service.unlink_calendar(current_actor())))

    @app.route("/users", methods=["POST"], endpoint="create_user")
    @roles_required(Role.ADMIN)
    def create_user():
        data = json_body()
        user = container.user_service.create_account(
            current_actor(),
            full_name=data.get("full_name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=data.get("role", Role.EMPLOYEE.value),
            dept_id=_int_field(data, "dept_id", required=False),
        )
        return jsonify(employee_json(user)), 201

    @app.route("/users/<int:employee_id>", methods=["PATCH"], endpoint="update_user")
    @roles_required(Role.ADMIN)
    def update_user(employee_id: int):
        data = json_body()
        user = container.user_service.update_account(
            current_actor(),
            employee_id,
            full_name=data.get("full_name"),
            email=data.get("email"),
            role=data.get("role"),
            password=data.get("password"),
        )
        return jsonify(employee_json(user))

    @app.route("/users/<int:employee_id>", methods=["DELETE"], endpoint="deactivate_user")
    @roles_required(Role.ADMIN)
    def deactivate_user(employee_id: int):
        return jsonify(employee_json(container.user_service.set_active(current_actor(), employee_id, False)))

    @app.route("/users/<int:employee_id>/activate", methods=["POST"], endpoint="activate_user")
    @roles_required(Role.ADMIN)
    def activate_user(employee_id: int):
        return jsonify(employee_json(container.user_service.set_active(current_actor(), employee_id, True)))

    @app.route("/users/<int:employee_id>/leave-balance", methods=["PATCH"], endpoint="adjust_leave_balance")
    @roles_required(Role.ADMIN)
    def adjust_leave_balance(employee_id: int):
        data = json_body()
        user = container.user_service.adjust_leave_balance(
            current_actor(),
            employee_id,
            delta=_int_field(data, "delta", required=False),
            value=_int_field(data, "value", required=False),
        )
        return jsonify(employee_json(user))

    @app.route("/departments", methods=["GET"], endpoint="list_departments")
    @login_required
    def list_departments():
        return jsonify([department_json(d) for d in container.department_service.list_all()])

    @app.route("/departments", methods=["POST"], endpoint="create_department")
    @roles_required(Role.ADMIN)
    def create_department():
        dept = container.department_service.create_department(current_actor(), json_body().get("name", ""))
        return jsonify(department_json(dept)), 201

    @app.route("/departments/<int:dept_id>", methods=["PATCH"], endpoint="rename_department")
    @roles_required(Role.ADMIN)
    def rename_department(dept_id: int):
        dept = container.department_service.rename_department(current_actor(), dept_id, json_body().get("name", ""))
        return jsonify(department_json(dept))

    @app.route("/departments/<int:dept_id>", methods=["DELETE"], endpoint="delete_department")
    @roles_required(Role.ADMIN)
    def delete_department(dept_id: int):
        container.department_service.delete_department(current_actor(), dept_id)
        return jsonify({"message": "Department deleted"})

    @app.route("/departments/<int:dept_id>/manager", methods=["PUT"], endpoint="assign_manager")
    @roles_required(Role.ADMIN)
    def assign_manager(dept_id: int):
        manager_id = _int_field(json_body(), "manager_id", required=False)
        dept = container.department_service.assign_manager(current_actor(), dept_id, manager_id)
        return jsonify(department_json(dept))

    @app.route("/departments/<int:dept_id>/members", methods=["POST"], endpoint="add_department_member")
    @roles_required(Role.ADMIN)
    def add_department_member(dept_id: int):
        employee_id = _int_field(json_body(), "employee_id")
        dept = container.department_service.add_member(current_actor(), dept_id, employee_id)
        return jsonify(department_json(dept))

    @app.route(
        "/departments/<int:dept_id>/members/<int:employee_id>",
        methods=["DELETE"],
        endpoint="remove_department_member",
    )
    @roles_required(Role.ADMIN)
    def remove_department_member(dept_id: int, employee_id: int):
        dept = container.department_service.remove_member(current_actor(), dept_id, employee_id)
        return jsonify(department_json(dept))
