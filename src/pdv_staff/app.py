"""
Factory for the staff-facing PDV API (PDV, Cozinha, Caixa and back office).

Uses JWT for authentication instead of server-side sessions.
"""

from __future__ import annotations

import logging
import os

from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from pdv_shared.audit_middleware import init_audit_middleware
from pdv_shared.config import load_config, validate_required_env_vars
from pdv_shared.db import init_db, init_engine
from pdv_shared.error_handlers import register_error_handlers
from pdv_shared.jwt_middleware import init_jwt_middleware
from pdv_shared.logging_config import configure_logging
from pdv_shared.models import Base

logger = logging.getLogger(__name__)

DEFAULT_DEV_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]


def create_app() -> Flask:
    """
    Build the Flask application that powers the staff terminals.
    """
    # Validate all required environment variables (fail-fast)
    validate_required_env_vars(skip_in_debug=False)

    app = Flask(__name__)
    config = load_config(os.getenv("APP_NAME", "pdv-staff"))

    configure_logging(config.app_name, config.log_level)

    # Database engine first, before any query
    init_engine(config)
    init_db(Base.metadata)

    app.config["SECRET_KEY"] = config.secret_key
    app.config["APP_NAME"] = config.app_name
    app.config["DEBUG_MODE"] = config.debug_mode
    app.config["JWT_ACCESS_TOKEN_EXPIRES_HOURS"] = config.jwt_access_token_expires_hours
    app.config["JWT_REFRESH_TOKEN_EXPIRES_DAYS"] = config.jwt_refresh_token_expires_days

    init_jwt_middleware(app)
    init_audit_middleware(app)
    register_error_handlers(app)

    # ProxyFix: Trust X-Forwarded-* headers from reverse proxy
    num_proxies = int(os.getenv("NUM_PROXIES", "0"))
    if num_proxies > 0:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=num_proxies,
            x_proto=num_proxies,
            x_host=num_proxies,
            x_port=num_proxies,
        )

    from pdv_staff.routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    allowed_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]
    if config.debug_mode or not allowed_origins:
        allowed_origins = DEFAULT_DEV_ORIGINS
    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins, "supports_credentials": True}},
        supports_credentials=True,
    )

    logger.info("PDV staff API ready (%s)", config.restaurant_name)
    return app
