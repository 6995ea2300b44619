import io

from PIL import Image

from app.services import thumbnails


def test_thumbnail_is_jpeg_at_most_600_wide(pdf_bytes):
    jpeg = thumbnails.generate_pdf_thumbnail(pdf_bytes)
    assert jpeg is not None
    img = Image.open(io.BytesIO(jpeg))
    assert img.format == "JPEG"
    assert img.width <= thumbnails.THUMBNAIL_MAX_WIDTH


def test_unrenderable_pdf_returns_none():
    assert thumbnails.generate_pdf_thumbnail(b"%PDF-1.4 truncated") is None


def test_thumbnail_key():
    assert thumbnails.thumbnail_key(42) == "thumbnails/42_thumb.jpg"


def test_upload_returns_public_url(pdf_bytes, monkeypatch):
    stored = {}

    def fake_upload(data, key, content_type):
        stored[key] = content_type
        return f"https://files.example/{key}"

    monkeypatch.setattr(thumbnails.storage, "upload_file", fake_upload)
    url = thumbnails.generate_and_upload_thumbnail(7, pdf_bytes)
    assert url == "https://files.example/thumbnails/7_thumb.jpg"
    assert stored == {"thumbnails/7_thumb.jpg": "image/jpeg"}


def test_upload_failure_returns_none(pdf_bytes, monkeypatch):
    def failing_upload(data, key, content_type):
        raise thumbnails.storage.StorageError("bucket unavailable")

    monkeypatch.setattr(thumbnails.storage, "upload_file", failing_upload)
    assert thumbnails.generate_and_upload_thumbnail(7, pdf_bytes) is None
