"""
JWT Service - Token generation and validation for the PDV staff API.

The hosted auth provider proves who the user is; the API then works with its
own short-lived HS256 tokens carrying the profile id and role.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Request, current_app


def get_access_token_expiry() -> int:
    try:
        return int(current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES_HOURS", 12))
    except RuntimeError:
        return int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "12"))


def get_refresh_token_expiry() -> int:
    try:
        return int(current_app.config.get("JWT_REFRESH_TOKEN_EXPIRES_DAYS", 7))
    except RuntimeError:
        return int(os.getenv("JWT_REFRESH_TOKEN_EXPIRES_DAYS", "7"))


JWT_ALGORITHM = "HS256"


class JWTError(Exception):
    """Base exception for JWT errors."""

    def __init__(self, message: str, status: int = 401):
        self.message = message
        self.status = status
        super().__init__(message)


class TokenExpiredError(JWTError):
    """Token has expired."""

    def __init__(self):
        super().__init__("Token expired", 401)


class InvalidTokenError(JWTError):
    """Token is invalid or malformed."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, 401)


def get_jwt_secret() -> str:
    """Get JWT secret key from config or environment."""
    try:
        secret = current_app.config.get("SECRET_KEY")
        if secret:
            return secret
    except RuntimeError:
        pass

    secret = os.getenv("SECRET_KEY", os.getenv("JWT_SECRET_KEY"))
    if not secret:
        raise RuntimeError("JWT_SECRET_KEY or SECRET_KEY must be configured")
    return secret


def create_access_token(
    profile_id: str,
    profile_name: str,
    profile_email: str,
    profile_role: str,
    expires_hours: int | None = None,
) -> str:
    """
    Create a JWT access token for a staff profile.

    Args:
        profile_id: Profile id (the auth provider user id)
        profile_name: Display name
        profile_email: Email
        profile_role: Role (admin, caixa, cozinha, garcom)
        expires_hours: Token expiration in hours

    Returns:
        Encoded JWT token string
    """
    secret = get_jwt_secret()
    expires = expires_hours or get_access_token_expiry()

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(profile_id),
        "iat": now,
        "exp": now + timedelta(hours=expires),
        "type": "access",
        "profile_id": profile_id,
        "profile_name": profile_name,
        "profile_email": profile_email,
        "profile_role": profile_role,
    }

    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def create_refresh_token(profile_id: str, expires_days: int | None = None) -> str:
    """
    Create a JWT refresh token for a staff profile.
    """
    secret = get_jwt_secret()
    expires = expires_days or get_refresh_token_expiry()

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(profile_id),
        "iat": now,
        "exp": now + timedelta(days=expires),
        "type": "refresh",
        "profile_id": profile_id,
    }

    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, verify_type: str | None = None) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string
        verify_type: Expected token type ('access' or 'refresh')

    Raises:
        TokenExpiredError: If token has expired
        InvalidTokenError: If token is invalid
    """
    secret = get_jwt_secret()

    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError(str(exc)) from exc

    if verify_type and payload.get("type") != verify_type:
        raise InvalidTokenError(f"Expected {verify_type} token")

    return payload


def extract_token_from_request(request: Request) -> str | None:
    """
    Extract JWT token from request.

    Checks in order:
    1. Authorization header (Bearer token)
    2. X-Access-Token header
    3. access_token cookie
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    token_header = request.headers.get("X-Access-Token")
    if token_header:
        return token_header

    return request.cookies.get("access_token")
