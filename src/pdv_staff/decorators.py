"""Decorators for route protection and authentication using JWT."""

from __future__ import annotations

from functools import wraps
from http import HTTPStatus

from flask import g, jsonify

from pdv_shared.constants import Area
from pdv_shared.jwt_middleware import get_current_user
from pdv_shared.permissions import can_access, default_route
from pdv_shared.serializers import error_response


def _unauthenticated():
    code = "AUTH_002" if getattr(g, "jwt_expired", False) else "AUTH_001"
    message = "Sessão expirada" if code == "AUTH_002" else "Autenticação requerida"
    return jsonify(error_response(message, {"code": code})), HTTPStatus.UNAUTHORIZED


def login_required(f):
    """Decorator to require JWT authentication for a route."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = get_current_user()
        if not user or not user.get("profile_id"):
            return _unauthenticated()
        return f(*args, **kwargs)

    return decorated_function


def area_required(*areas: Area):
    """
    Decorator factory restricting a route to the roles allowed in any of `areas`.

    A denied request gets 403 with the default screen of the caller's role in
    `redirect_to`.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = get_current_user()
            if not user or not user.get("profile_id"):
                return _unauthenticated()

            role = user.get("profile_role")
            if any(can_access(role, area) for area in areas):
                return f(*args, **kwargs)

            return jsonify(
                error_response(
                    "Acesso negado para o seu perfil",
                    {"code": "PERM_001", "redirect_to": default_route(role)},
                )
            ), HTTPStatus.FORBIDDEN

        return decorated_function

    return decorator


def admin_required(f):
    """Decorator to require admin role for a route."""
    return area_required(Area.ADMIN)(f)
