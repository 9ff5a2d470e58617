import logging
import time

from flask import Flask, Response, g, has_request_context, request

from pdv_shared.jwt_middleware import get_current_user

logger = logging.getLogger("audit")


def _session_trace_id() -> str:
    full_sid = request.headers.get("X-Request-ID") or request.cookies.get("access_token") or "NO_SESSION"
    return full_sid[:8] + "..." if len(full_sid) > 20 else full_sid


def _user_id() -> str:
    user = get_current_user()
    return user.get("profile_email") if user else "ANONYMOUS"


def init_audit_middleware(app: Flask):
    """
    Registra hooks de auditoria de requests e responses.
    Padrão: USER|ACTION|TYPE|CODE|RETVAL|SESSION|TIME
    """

    @app.before_request
    def start_timer():
        g.start_time = time.time()

    @app.after_request
    def log_request(response: Response):
        action = f"{request.method} {request.path}"

        duration = 0
        if hasattr(g, "start_time"):
            duration = int((time.time() - g.start_time) * 1000)

        status_code = response.status_code
        if response.direct_passthrough:
            content_length = 0
        else:
            content_length = response.content_length or len(response.get_data())

        log_line = (
            f"{_user_id()}|{action}|RESPONSE|{status_code}|{content_length} bytes|"
            f"{_session_trace_id()}|{duration}ms"
        )

        if status_code >= 500:
            logger.error(log_line)
        elif status_code >= 400:
            logger.warning(log_line)
        else:
            logger.info(log_line)

        return response


def audit_action(action_name: str, details: str = "", status: str = "OK", actor: str | None = None):
    """
    Registra uma ação interna de negócio (conta aberta, item cancelado, caixa aberto...).
    Usa o mesmo padrão: USER|ACTION|TYPE|CODE|RETVAL|SESSION|TIME com TYPE 'INTERNAL'.
    """
    if has_request_context():
        user_id = actor or _user_id()
        session_trace_id = _session_trace_id()
        duration = int((time.time() - g.start_time) * 1000) if hasattr(g, "start_time") else 0
    else:
        # scripts and background tasks
        user_id = actor or "SYSTEM"
        session_trace_id = "BACKGROUND"
        duration = 0

    logger.info(f"{user_id}|{action_name}|INTERNAL|{status}|{details}|{session_trace_id}|{duration}ms")
