"""
Domain exceptions raised by the PDV services.

Every error carries the HTTP status it maps to and the error-catalog code the
API returns next to the message; the Flask error handlers do the translation.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


class PDVError(Exception):
    """Base class for controlled errors of the system."""

    status: HTTPStatus = HTTPStatus.BAD_REQUEST
    code: str = "SYSTEM_001"
    retriable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: HTTPStatus | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status is not None:
            self.status = status
        self.details = details or {}

    def to_details(self) -> dict[str, Any]:
        payload = {"code": self.code, **self.details}
        if self.retriable:
            payload["retriable"] = True
        return payload


class ValidationError(PDVError):
    """Input rejected before touching any state."""

    status = HTTPStatus.BAD_REQUEST
    code = "VALID_001"


class NotFoundError(PDVError):
    status = HTTPStatus.NOT_FOUND
    code = "DATA_001"


class InvalidTransition(PDVError):
    """A lifecycle move that the state machine does not allow."""

    status = HTTPStatus.CONFLICT
    code = "STATE_001"

    def __init__(self, message: str, current_status: Any = None, target_status: Any = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        if current_status is not None:
            details["current_status"] = getattr(current_status, "value", current_status)
        if target_status is not None:
            details["target_status"] = getattr(target_status, "value", target_status)
        super().__init__(message, details=details, **kwargs)
        self.current_status = current_status
        self.target_status = target_status


class PreconditionFailed(PDVError):
    """The operation is valid in general but not in the current state of the data."""

    status = HTTPStatus.CONFLICT
    code = "STATE_002"


class ConflictError(PDVError):
    """Lost a concurrent write; the caller may reload and try again."""

    status = HTTPStatus.CONFLICT
    code = "CONC_001"
    retriable = True


class AuthError(PDVError):
    """Raised when an authentication or authorization error occurs."""

    status = HTTPStatus.UNAUTHORIZED
    code = "AUTH_001"

    def __init__(self, message: str, status: HTTPStatus = HTTPStatus.UNAUTHORIZED, **kwargs) -> None:
        super().__init__(message, status=status, **kwargs)
