"""
Auth API - JWT-based authentication endpoints.

Handles staff login, logout, token refresh, current user info and the
navigation allowed for the current role.
"""

from flask import Blueprint, g, jsonify, make_response, request

from pdv_shared.auth.service import AuthResult, AuthService
from pdv_shared.errors import AuthError
from pdv_shared.jwt_middleware import get_profile_id, get_profile_role
from pdv_shared.logging_config import get_logger
from pdv_shared.permissions import default_route, navigation_for
from pdv_shared.schemas import LoginRequest
from pdv_shared.serializers import success_response
from pdv_staff.decorators import login_required

auth_bp = Blueprint("auth", __name__)
logger = get_logger(__name__)


def _token_response(result: AuthResult, include_refresh: bool = True):
    data = {
        "access_token": result.access_token,
        "profile": result.profile.to_dict(),
        "redirect_to": result.profile.redirect_to,
        "navigation": navigation_for(result.profile.role),
    }
    if include_refresh:
        data["refresh_token"] = result.refresh_token

    response = make_response(jsonify(success_response(data)))
    response.set_cookie(
        "access_token",
        result.access_token,
        httponly=True,
        secure=request.is_secure,
        samesite="Lax",
        max_age=12 * 3600,
        path="/",
    )
    if include_refresh:
        response.set_cookie(
            "refresh_token",
            result.refresh_token,
            httponly=True,
            secure=request.is_secure,
            samesite="Lax",
            max_age=7 * 86400,
            path="/",
        )
    return response


@auth_bp.post("/auth/login")
def post_login():
    """
    Authenticate a staff member and issue JWT tokens.

    Body:
        {"email": str, "password": str}
    """
    payload = request.get_json(silent=True) or {}
    login_data = LoginRequest(**payload)

    try:
        result = AuthService.sign_in(login_data.email, login_data.password)
    except AuthError as exc:
        logger.warning("Failed login attempt for %s: %s", login_data.email, exc)
        raise

    return _token_response(result)


@auth_bp.post("/auth/logout")
def post_logout():
    """
    Logout - clears JWT cookies.

    For stateless JWT, the token isn't invalidated server-side.
    """
    AuthService.sign_out(g.jwt_token)

    response = make_response(jsonify(success_response({"logged_out": True})))
    response.delete_cookie("access_token", path="/")
    response.delete_cookie("refresh_token", path="/")
    return response


@auth_bp.post("/auth/refresh")
def post_refresh():
    """Issue a new access token from the refresh token (body or cookie)."""
    payload = request.get_json(silent=True) or {}
    refresh_token = payload.get("refresh_token") or request.cookies.get("refresh_token")
    if not refresh_token:
        raise AuthError("Refresh token obrigatório", code="AUTH_002")

    result = AuthService.refresh(refresh_token)
    return _token_response(result, include_refresh=False)


@auth_bp.get("/auth/me")
@login_required
def get_me():
    profile = AuthService.load_profile(get_profile_id())
    return jsonify(
        success_response(
            {
                "profile": profile.to_dict(),
                "navigation": navigation_for(profile.role),
            }
        )
    )


@auth_bp.get("/navigation")
@login_required
def get_navigation():
    role = get_profile_role()
    return jsonify(
        success_response({"redirect_to": default_route(role), "items": navigation_for(role)})
    )
