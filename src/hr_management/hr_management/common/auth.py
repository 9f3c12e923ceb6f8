from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..users.model import Actor


def current_actor() -> Optional[Actor]:
    """The logged-in principal stored in the Flask session, if any."""
    user_id = session.get("user_id")
    role = session.get("role")
    if user_id is None or not role:
        return None
    try:
        return Actor(employee_id=int(user_id), role=Role(role))
    except ValueError:
        return None


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_actor() is None:
            return jsonify({"error": "unauthenticated", "message": "Please sign in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = frozenset(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            actor = current_actor()
            if actor is None:
                return jsonify({"error": "unauthenticated", "message": "Please sign in to continue"}), 401
            if actor.role not in allowed:
                return jsonify({"error": "forbidden", "message": "You do not have permission"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
