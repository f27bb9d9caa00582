"""
Product image uploads to a Supabase Storage bucket.
"""

from __future__ import annotations

import os
from typing import Any
from urllib.parse import quote

from supabase import Client, create_client

from ktv_shared.logging_config import get_logger

logger = get_logger(__name__)


def _project_url() -> str:
    return os.getenv("SUPABASE_URL", "").rstrip("/")


class SupabaseStorage:
    """Service-role client shared by every upload in the process."""

    _client: Client | None = None

    @classmethod
    def _get_client(cls) -> Client:
        if cls._client is None:
            key = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
            if not _project_url() or not key:
                logger.warning("Product image upload attempted without Supabase credentials")
                raise RuntimeError("Supabase Storage is not configured")
            cls._client = create_client(_project_url(), key)
        return cls._client

    @classmethod
    def upload_bytes(
        cls, bucket: str, path: str, content: bytes, content_type: str | None = None
    ) -> dict[str, Any]:
        """Store ``content`` at ``bucket/path``, replacing any existing object."""
        file_options = {"upsert": "true"}
        if content_type:
            file_options["content-type"] = content_type
        result = cls._get_client().storage.from_(bucket).upload(path, content, file_options)
        return {"path": getattr(result, "path", path)}

    @classmethod
    def get_public_url(cls, bucket: str, path: str) -> str:
        return f"{_project_url()}/storage/v1/object/public/{bucket}/{quote(path)}"
