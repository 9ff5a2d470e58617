"""
Utilities to centralize configuration handling across the PDV services.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass
class AppConfig:
    """Simple container for application level settings."""

    app_name: str
    # PostgreSQL/Supabase database
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    db_sslmode: str
    database_url: str
    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str
    # Storage
    storage_bucket_products: str
    storage_bucket_combos: str
    # App settings
    secret_key: str
    log_level: str
    restaurant_name: str
    timezone: str
    kitchen_refresh_seconds: int
    default_service_charge_percent: Decimal
    block_cancel_with_delivered: bool
    debug_mode: bool
    # JWT settings
    jwt_access_token_expires_hours: int
    jwt_refresh_token_expires_days: int

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.supabase_url and (self.supabase_service_role_key or self.supabase_anon_key))

    @property
    def sqlalchemy_uri(self) -> str:
        """
        Build a SQLAlchemy URI for the hosted Postgres.

        DATABASE_URL wins when present (tests and local runs point it at SQLite).
        Includes SSL mode for Supabase connections.
        """
        if self.database_url:
            return self.database_url
        ssl_arg = f"?sslmode={self.db_sslmode}" if self.db_sslmode else ""
        return (
            f"postgresql+psycopg2://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}{ssl_arg}"
        )


def _read_env(name: str, default: str | None = None) -> str:
    """
    Internal helper to fetch environment variables with support for defaults.
    """
    value = os.getenv(name)
    if value is None:
        if default is None:
            raise RuntimeError(f"Missing required environment variable '{name}'")
        value = default
    return value


def read_bool(name: str, default: str = "false") -> bool:
    value = _read_env(name, default)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def validate_required_env_vars(skip_in_debug: bool = False) -> None:
    """
    Validate that all required environment variables are set.

    Fails fast during startup instead of breaking on the first request.

    Args:
        skip_in_debug: If True, skip validation when DEBUG_MODE=true

    Raises:
        RuntimeError: If any required variable is missing or has an invalid value
    """
    if skip_in_debug and read_bool("DEBUG_MODE", "false"):
        return

    errors = []

    secret_key = os.getenv("SECRET_KEY", "")
    if not secret_key or secret_key in {"change-me-please", "super-secret-change-me"}:
        errors.append(
            "SECRET_KEY must be configured with a secure random value. "
            'Generate with: python3 -c "import secrets; print(secrets.token_urlsafe(32))"'
        )

    if not os.getenv("DATABASE_URL"):
        for name in ("POSTGRES_HOST", "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_DB"):
            if not os.getenv(name):
                errors.append(f"{name} must be configured (or set DATABASE_URL)")

    if os.getenv("SUPABASE_URL") and not (
        os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")
    ):
        errors.append("SUPABASE_URL is set but neither SUPABASE_SERVICE_ROLE_KEY nor SUPABASE_ANON_KEY is")

    jwt_access_hours = os.getenv("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "")
    if jwt_access_hours:
        try:
            int(jwt_access_hours)
        except ValueError:
            errors.append(
                f"JWT_ACCESS_TOKEN_EXPIRES_HOURS must be a valid integer, got: {jwt_access_hours}"
            )

    service_charge = os.getenv("DEFAULT_SERVICE_CHARGE_PERCENT", "")
    if service_charge:
        try:
            value = Decimal(service_charge)
            if value < 0 or value > 100:
                errors.append("DEFAULT_SERVICE_CHARGE_PERCENT must be between 0 and 100")
        except ArithmeticError:
            errors.append(
                f"DEFAULT_SERVICE_CHARGE_PERCENT must be numeric, got: {service_charge}"
            )

    if errors:
        error_msg = "\nConfiguration errors - missing or invalid environment variables:\n"
        for error in errors:
            error_msg += f"  - {error}\n"
        raise RuntimeError(error_msg)


def load_config(app_name: str) -> AppConfig:
    """
    Produce an AppConfig instance populated from environment variables.

    Each entry point passes its own `app_name` so logs stay easy to tell apart
    while reusing the same loader.
    """
    return AppConfig(
        app_name=app_name,
        db_host=_read_env("POSTGRES_HOST", "localhost"),
        db_port=int(_read_env("POSTGRES_PORT", "5432")),
        db_user=_read_env("POSTGRES_USER", "postgres"),
        db_password=_read_env("POSTGRES_PASSWORD", "postgres"),
        db_name=_read_env("POSTGRES_DB", "postgres"),
        db_sslmode=_read_env("POSTGRES_SSLMODE", "require"),
        database_url=_read_env("DATABASE_URL", ""),
        supabase_url=_read_env("SUPABASE_URL", ""),
        supabase_anon_key=_read_env("SUPABASE_ANON_KEY", ""),
        supabase_service_role_key=_read_env("SUPABASE_SERVICE_ROLE_KEY", ""),
        storage_bucket_products=_read_env("STORAGE_BUCKET_PRODUCTS", "produtos"),
        storage_bucket_combos=_read_env("STORAGE_BUCKET_COMBOS", "combos"),
        secret_key=_read_env("SECRET_KEY", "super-secret-change-me"),
        log_level=_read_env("LOG_LEVEL", "INFO"),
        restaurant_name=_read_env("RESTAURANT_NAME", "padaria"),
        timezone=_read_env("TIMEZONE", "America/Sao_Paulo"),
        kitchen_refresh_seconds=int(_read_env("KITCHEN_REFRESH_SECONDS", "10")),
        default_service_charge_percent=Decimal(_read_env("DEFAULT_SERVICE_CHARGE_PERCENT", "0")),
        block_cancel_with_delivered=read_bool("BLOCK_CANCEL_WITH_DELIVERED", "false"),
        debug_mode=read_bool("DEBUG_MODE", "false"),
        jwt_access_token_expires_hours=int(_read_env("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "12")),
        jwt_refresh_token_expires_days=int(_read_env("JWT_REFRESH_TOKEN_EXPIRES_DAYS", "7")),
    )
