"""
Supabase Storage helper for catalog photo uploads.
"""

from __future__ import annotations

import logging
import os
from http import HTTPStatus
from typing import Any
from urllib.parse import quote

from supabase import Client

from pdv_shared.config import load_config
from pdv_shared.errors import PDVError
from pdv_shared.supabase.client import get_supabase_client

logger = logging.getLogger(__name__)


class StorageUnavailable(PDVError):
    """Storage is not configured or the upload failed."""

    code = "STORAGE_001"

    def __init__(self, message: str = "Armazenamento de arquivos indisponível") -> None:
        super().__init__(message, status=HTTPStatus.BAD_GATEWAY)


class SupabaseStorage:
    """Lightweight wrapper around Supabase Storage buckets."""

    @classmethod
    def _get_client(cls) -> Client | None:
        config = load_config(os.getenv("APP_NAME", "pdv"))
        if not config.supabase_url or not config.supabase_service_role_key:
            logger.warning("Supabase Storage credentials missing")
            return None
        return get_supabase_client(config, service_role=True)

    @classmethod
    def upload_bytes(
        cls,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        client = cls._get_client()
        if client is None:
            raise StorageUnavailable()

        options: dict[str, Any] = {"upsert": "true"}
        if content_type:
            options["content-type"] = content_type

        try:
            response = client.storage.from_(bucket).upload(path, content, options)
        except Exception as exc:
            logger.error("Upload to %s/%s failed: %s", bucket, path, exc)
            raise StorageUnavailable("Falha ao enviar a foto") from exc
        return response.model_dump() if hasattr(response, "model_dump") else {"data": response}

    @classmethod
    def get_public_url(cls, bucket: str, path: str) -> str:
        config = load_config(os.getenv("APP_NAME", "pdv"))
        safe_path = quote(path, safe="/")
        return f"{config.supabase_url}/storage/v1/object/public/{bucket}/{safe_path}"
