"""Authentication helpers for the PDV staff API."""

from pdv_shared.auth.service import AuthResult, AuthService, ProfileData
from pdv_shared.errors import AuthError

__all__ = ["AuthError", "AuthResult", "AuthService", "ProfileData"]
