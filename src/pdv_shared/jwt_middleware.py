"""
JWT Middleware for Flask.

Provides request-level JWT validation and user context injection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from flask import g, request

from pdv_shared.jwt_service import (
    InvalidTokenError,
    TokenExpiredError,
    decode_token,
    extract_token_from_request,
)

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)


def init_jwt_middleware(app: Flask) -> None:
    """
    Initialize JWT middleware for a Flask app.

    Sets up a before_request handler that extracts the token, validates it and
    stores the claims in g.current_user. Route decorators decide what to do
    when no user is present.
    """

    @app.before_request
    def load_jwt_user():
        """Load user from JWT token into Flask g object."""
        g.current_user = None
        g.jwt_token = None
        g.jwt_expired = False

        token = extract_token_from_request(request)
        if not token:
            return

        try:
            payload = decode_token(token, verify_type="access")
            g.current_user = payload
            g.jwt_token = token
        except TokenExpiredError:
            g.jwt_expired = True
            logger.debug("Expired token on %s", request.path)
        except InvalidTokenError as e:
            logger.warning("Invalid token on %s: %s", request.path, e)


def get_current_user() -> dict[str, Any] | None:
    """
    Get current authenticated user from request context.
    """
    return getattr(g, "current_user", None)


def get_profile_id() -> str | None:
    """Get current profile ID from JWT."""
    user = get_current_user()
    return user.get("profile_id") if user else None


def get_profile_role() -> str | None:
    """Get current profile role from JWT."""
    user = get_current_user()
    return user.get("profile_role") if user else None
