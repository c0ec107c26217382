"""Tests for upload validation ahead of the extraction pipeline."""

import pytest

from clickquiz.errors import InvalidUploadError
from clickquiz.services.pipeline import check_upload_size, validate_upload


def test_accepts_supported_video(settings):
    assert validate_upload("Demo.MOV", "video/quicktime", 1024, settings) == ".mov"


def test_rejects_empty_upload(settings):
    with pytest.raises(InvalidUploadError, match="empty"):
        validate_upload("demo.mp4", "video/mp4", 0, settings)


def test_size_limit_is_inclusive(settings):
    assert validate_upload("demo.mp4", "video/mp4", settings.max_upload_bytes, settings) == ".mp4"

    with pytest.raises(InvalidUploadError, match="100MB"):
        validate_upload("demo.mp4", "video/mp4", settings.max_upload_bytes + 1, settings)


def test_rejects_missing_filename(settings):
    with pytest.raises(InvalidUploadError, match="No video file provided"):
        validate_upload(None, "video/mp4", 10, settings)


def test_unknown_size_passes_early_check(settings):
    check_upload_size(None, settings)

    with pytest.raises(InvalidUploadError):
        check_upload_size(settings.max_upload_bytes + 1, settings)
