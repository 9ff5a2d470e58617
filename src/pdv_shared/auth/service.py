"""Centralized authentication for staff profiles."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import asdict, dataclass
from http import HTTPStatus

from sqlalchemy import func, select

from pdv_shared.config import load_config
from pdv_shared.db import get_session
from pdv_shared.errors import AuthError
from pdv_shared.jwt_service import (
    JWTError,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from pdv_shared.models import Profile
from pdv_shared.permissions import default_route
from pdv_shared.supabase.client import get_supabase_client

logger = logging.getLogger(__name__)

SessionListener = Callable[[str, "ProfileData | None"], None]


@dataclass
class ProfileData:
    """Profile information detached from the database session."""

    id: str
    email: str
    name: str
    role: str
    active: bool

    @property
    def redirect_to(self) -> str:
        return default_route(self.role)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["redirect_to"] = self.redirect_to
        return data


@dataclass
class AuthResult:
    profile: ProfileData
    access_token: str
    refresh_token: str


def _to_data(profile: Profile) -> ProfileData:
    return ProfileData(
        id=profile.id,
        email=profile.email,
        name=profile.name,
        role=profile.role,
        active=profile.active,
    )


class AuthService:
    """
    Signs staff in against Supabase Auth when the project is configured and
    against the local credential hash otherwise, then resolves the profile.
    """

    _listeners: list[SessionListener] = []

    @classmethod
    def on_session_change(cls, callback: SessionListener) -> Callable[[], None]:
        """Register `callback(event, profile)`; returns a function that unregisters it."""
        cls._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in cls._listeners:
                cls._listeners.remove(callback)

        return unsubscribe

    @classmethod
    def _notify(cls, event: str, profile: ProfileData | None) -> None:
        for callback in list(cls._listeners):
            try:
                callback(event, profile)
            except Exception:
                logger.exception("Session listener failed for event %s", event)

    @staticmethod
    def _provider_user_id(email: str, password: str) -> str | None:
        """Return the auth user id from Supabase, or None when Supabase is not configured."""
        config = load_config(os.getenv("APP_NAME", "pdv"))
        if not config.supabase_enabled:
            return None
        client = get_supabase_client(config)
        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as exc:
            logger.info("Supabase sign-in rejected for %s: %s", email, exc)
            raise AuthError("Credenciais inválidas") from exc
        if response.user is None:
            raise AuthError("Credenciais inválidas")
        return response.user.id

    @classmethod
    def sign_in(cls, email: str, password: str) -> AuthResult:
        email = (email or "").strip().lower()
        provider_user_id = cls._provider_user_id(email, password)

        with get_session() as session:
            if provider_user_id is not None:
                profile = session.get(Profile, provider_user_id)
                if profile is None:
                    raise AuthError("Perfil não encontrado para este usuário")
            else:
                profile = (
                    session.execute(select(Profile).where(func.lower(Profile.email) == email))
                    .scalars()
                    .one_or_none()
                )
                if profile is None or not profile.verify_password(password):
                    raise AuthError("Credenciais inválidas")

            if not profile.active:
                raise AuthError("Usuário inativo", status=HTTPStatus.FORBIDDEN, code="AUTH_003")

            data = _to_data(profile)

        result = AuthResult(
            profile=data,
            access_token=create_access_token(data.id, data.name, data.email, data.role),
            refresh_token=create_refresh_token(data.id),
        )
        logger.info("Profile %s (%s) signed in", data.id, data.role)
        cls._notify("SIGNED_IN", data)
        return result

    @staticmethod
    def load_profile(profile_id: str) -> ProfileData:
        """Fetch the current profile; missing and inactive profiles are rejected."""
        with get_session() as session:
            profile = session.get(Profile, profile_id)
            if profile is None:
                raise AuthError("Perfil não encontrado", code="AUTH_002")
            if not profile.active:
                raise AuthError("Usuário inativo", status=HTTPStatus.FORBIDDEN, code="AUTH_003")
            return _to_data(profile)

    @classmethod
    def get_session(cls, token: str | None) -> ProfileData | None:
        """Resolve an access token to an active profile, or None."""
        if not token:
            return None
        try:
            payload = decode_token(token, verify_type="access")
            return cls.load_profile(payload["profile_id"])
        except (JWTError, AuthError, KeyError) as exc:
            logger.debug("Session lookup failed: %s", exc)
            return None

    @classmethod
    def refresh(cls, refresh_token: str) -> AuthResult:
        try:
            payload = decode_token(refresh_token, verify_type="refresh")
        except JWTError as exc:
            raise AuthError("Refresh token inválido ou expirado", code="AUTH_002") from exc

        data = cls.load_profile(payload.get("profile_id", ""))
        result = AuthResult(
            profile=data,
            access_token=create_access_token(data.id, data.name, data.email, data.role),
            refresh_token=refresh_token,
        )
        cls._notify("TOKEN_REFRESHED", data)
        return result

    @classmethod
    def sign_out(cls, token: str | None = None) -> None:
        """
        Tokens are stateless, so signing out only ends the provider session
        and tells listeners; the client discards its tokens.
        """
        profile = cls.get_session(token)
        config = load_config(os.getenv("APP_NAME", "pdv"))
        if config.supabase_enabled:
            client = get_supabase_client(config)
            try:
                client.auth.sign_out()
            except Exception as exc:
                logger.warning("Supabase sign-out failed: %s", exc)
        cls._notify("SIGNED_OUT", profile)
