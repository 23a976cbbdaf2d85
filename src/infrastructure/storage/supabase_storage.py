from __future__ import annotations

import os
from pathlib import Path

from loguru import logger
from supabase import Client


class SupabaseStorage:
    """Read-only source adapter for Supabase Storage with a local directory fallback."""

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.bucket = os.getenv("SUPABASE_STORAGE_BUCKET", "images")
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.local_dir = Path(os.getenv("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage"))

    def _local_path(self, path: str) -> Path:
        root = self.local_dir.resolve()
        full_path = (root / path.lstrip("/")).resolve()
        if not full_path.is_relative_to(root):
            raise ValueError(f"Storage path escapes the storage directory: {path}")
        return full_path

    def download_bytes(self, path: str) -> bytes:
        if self.disabled or self.client is None:
            logger.debug(f"Reading {path} from local storage {self.local_dir}")
            return self._local_path(path).read_bytes()
        # pragma: no cover - network
        return self.client.storage.from_(self.bucket).download(path)
