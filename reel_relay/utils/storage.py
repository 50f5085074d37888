from __future__ import annotations

import os
import secrets
import tempfile
import time

from reel_relay.models import MediaKind


DEFAULT_CACHE_DIR = os.path.join(tempfile.gettempdir(), "insta-story-cache")


class LocalFileStorage:
    """Hands out temp file paths for downloaded media and removes them again."""

    def __init__(self, base_dir: str | None = None):
        self.base_dir = base_dir or DEFAULT_CACHE_DIR

    def create_temp_file(self, kind: MediaKind | str, extension: str) -> str:
        """Return a fresh path inside base_dir. The file itself is not created."""
        os.makedirs(self.base_dir, exist_ok=True)
        ext = extension if extension.startswith(".") else f".{extension}"
        kind_name = kind.value if isinstance(kind, MediaKind) else str(kind)
        file_name = f"{kind_name}-{int(time.time() * 1000)}-{secrets.token_hex(4)}{ext}"
        return os.path.join(self.base_dir, file_name)

    def delete(self, path: str) -> None:
        try:
            os.unlink(path)
        except FileNotFoundError:
            return
