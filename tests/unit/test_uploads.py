import pytest

from src.domain.errors import ValidationError
from src.domain.uploads import validate_image_upload


def test_accepts_allowed_image(rules):
    validate_image_upload("photo.PNG", b"\x89PNG", rules.uploads)


def test_rejects_empty_file(rules):
    with pytest.raises(ValidationError, match="required"):
        validate_image_upload("photo.png", b"", rules.uploads)


def test_rejects_disallowed_extension(rules):
    with pytest.raises(ValidationError, match="not allowed"):
        validate_image_upload("script.exe", b"MZ", rules.uploads)
    with pytest.raises(ValidationError, match="not allowed"):
        validate_image_upload("noextension", b"data", rules.uploads)


def test_rejects_oversize_file(rules):
    data = b"x" * (rules.uploads.max_upload_bytes + 1)
    with pytest.raises(ValidationError, match="exceeds maximum"):
        validate_image_upload("big.jpg", data, rules.uploads)
