from datetime import datetime
from typing import Protocol


class ClockPort(Protocol):
    """Source of "now" for created_at/updated_at stamps."""

    def now_utc(self) -> datetime:
        ...


class BlobStorePort(Protocol):
    """Blob host for images. The core only ever keeps the returned URL."""

    def upload(self, filename: str, data: bytes) -> str:
        """Store bytes and return a public URL. Raises DependencyFailure."""
        ...

    def delete(self, url: str) -> None:
        """Remove a blob previously returned by upload. Unknown URLs are ignored."""
        ...
