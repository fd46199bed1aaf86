import os
import logging
from pathlib import Path
from typing import Optional

from marketplace.core.config import settings
from .base import BlobStore

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """Stores files below a root directory on the local disk"""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.STORAGE_ROOT)

    def _full_path(self, path: str) -> Path:
        full_path = (self.root / path).resolve()
        if self.root.resolve() not in full_path.parents:
            raise ValueError(f"Path escapes storage root: {path}")
        return full_path

    def put(self, path: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        full_path = self._full_path(path)
        os.makedirs(full_path.parent, exist_ok=True)
        full_path.write_bytes(content)
        logger.info(f"Stored {len(content)} bytes at {full_path}")
        return path

    def get(self, path: str) -> bytes:
        return self._full_path(path).read_bytes()

    def exists(self, path: str) -> bool:
        return self._full_path(path).exists()
