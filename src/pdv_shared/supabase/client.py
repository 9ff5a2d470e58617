"""
Shared Supabase client factory.
"""

from __future__ import annotations

import logging

from supabase import Client, create_client

from pdv_shared.config import AppConfig

logger = logging.getLogger(__name__)

_clients: dict[str, Client] = {}


def get_supabase_client(config: AppConfig, service_role: bool = False) -> Client | None:
    """
    Return a cached client for the configured project, or None when Supabase
    is not configured (local runs fall back to local credentials).
    """
    key = config.supabase_service_role_key if service_role else config.supabase_anon_key
    key = key or config.supabase_service_role_key or config.supabase_anon_key
    if not config.supabase_url or not key:
        return None

    cache_key = f"{config.supabase_url}|{'service' if service_role else 'anon'}"
    if cache_key not in _clients:
        _clients[cache_key] = create_client(config.supabase_url, key)
        logger.info("Supabase client created (%s)", "service" if service_role else "anon")
    return _clients[cache_key]


def reset_clients() -> None:
    _clients.clear()
