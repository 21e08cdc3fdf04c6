import logging
import os
from pathlib import Path
from uuid import uuid4

from src.domain.errors import DependencyFailure

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """
    Blob store on the local filesystem.

    Files are written under ``base_path`` with a random name that keeps the
    original extension; the returned URL is ``public_url/<name>``.
    """

    def __init__(self, base_path: str, public_url: str = "/blobs"):
        self.base_path = Path(base_path).resolve()
        self.public_url = public_url.rstrip("/")
        if not self.base_path.exists():
            os.makedirs(self.base_path, exist_ok=True)

    def _safe_path(self, name: str) -> Path:
        # Prevent traversal
        target = (self.base_path / name).resolve()
        if target.parent != self.base_path:
            raise DependencyFailure(f"Invalid blob name: {name}")
        return target

    def _name_from_url(self, url: str) -> str | None:
        prefix = f"{self.public_url}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix) :]

    def upload(self, filename: str, data: bytes) -> str:
        name = f"{uuid4().hex}{Path(filename).suffix.lower()}"
        target = self._safe_path(name)
        try:
            with open(target, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error("Blob upload failed for %s: %s", filename, e)
            raise DependencyFailure("Image upload failed") from e
        logger.info("Stored blob %s (%d bytes)", name, len(data))
        return f"{self.public_url}/{name}"

    def delete(self, url: str) -> None:
        name = self._name_from_url(url)
        if not name:
            return
        target = self._safe_path(name)
        if not target.exists():
            return
        try:
            os.remove(target)
        except OSError as e:
            logger.error("Blob delete failed for %s: %s", url, e)
            raise DependencyFailure("Image removal failed") from e
        logger.info("Deleted blob %s", name)

    def path_for(self, url: str) -> Path | None:
        """Local file behind a URL this store issued, if it still exists."""
        name = self._name_from_url(url)
        if not name:
            return None
        target = (self.base_path / name).resolve()
        if target.parent != self.base_path or not target.is_file():
            return None
        return target
