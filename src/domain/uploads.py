from pathlib import Path

from src.domain.errors import ValidationError
from src.rules.models import UploadsRules


def validate_image_upload(filename: str, data: bytes, rules: UploadsRules) -> None:
    """Reject empty, oversized or non-image uploads before they reach the blob store."""
    if not data:
        raise ValidationError("Image file is required")

    ext = Path(filename or "").suffix.lower()
    if ext not in rules.allowed:
        raise ValidationError(
            f"File type '{ext or filename}' is not allowed. "
            f"Allowed types: {', '.join(rules.allowlist_extensions)}"
        )

    if len(data) > rules.max_upload_bytes:
        raise ValidationError(
            f"File size {len(data)} bytes exceeds maximum of {rules.max_upload_bytes} bytes"
        )
