"""
Tests for temporary upload handling.
"""

import io

import pytest
from knowledge_base.core.exceptions import ValidationError
from knowledge_base.core.uploads import check_mime_type, cleanup_upload, read_text, save_upload, temp_upload_path


@pytest.mark.parametrize("mime_type", ["text/plain", "text/markdown", "text/plain; charset=utf-8", "TEXT/PLAIN"])
def test_allowed_mime_types(mime_type):
    check_mime_type(mime_type)


@pytest.mark.parametrize("mime_type", ["image/png", "application/zip", "", None])
def test_rejected_mime_types(mime_type):
    with pytest.raises(ValidationError):
        check_mime_type(mime_type)


def test_temp_upload_path_keeps_extension(tmp_path):
    first = temp_upload_path("report.md", str(tmp_path))
    second = temp_upload_path("report.md", str(tmp_path))

    assert first.suffix == ".md"
    assert first.parent == tmp_path
    assert first != second


def test_save_read_and_cleanup(tmp_path):
    upload_dir = tmp_path / "uploads"
    path = save_upload(io.BytesIO("naïve café\r\nline two".encode("utf-8")), "notes.txt", str(upload_dir), max_size=1024)

    assert path.exists()
    assert read_text(path) == "naïve café\r\nline two"

    cleanup_upload(path)
    assert not path.exists()
    # Second cleanup is a no-op
    cleanup_upload(path)


def test_oversized_upload_leaves_nothing_behind(tmp_path):
    with pytest.raises(ValidationError):
        save_upload(io.BytesIO(b"x" * 100), "big.txt", str(tmp_path), max_size=10)
    assert list(tmp_path.iterdir()) == []


def test_read_text_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "bad.txt"
    path.write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(ValidationError):
        read_text(path)
