"""First-page JPEG previews for documents."""

import io

import fitz  # PyMuPDF
from PIL import Image

from app.core.logging_config import get_logger
from app.services import storage

logger = get_logger(__name__)

THUMBNAIL_MAX_WIDTH = 600
THUMBNAIL_QUALITY = 85


def thumbnail_key(document_id: int) -> str:
    return f"{storage.THUMBNAILS_FOLDER}/{document_id}_thumb.jpg"


def generate_pdf_thumbnail(pdf_bytes: bytes) -> bytes | None:
    """Render page 1 at most 600px wide and encode it as JPEG. None if the PDF can't be rendered."""
    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            if doc.page_count == 0:
                return None
            page = doc[0]
            zoom = min(THUMBNAIL_MAX_WIDTH / page.rect.width, 2.0)
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    except Exception as e:
        logger.warning(f"Thumbnail render failed | error={e}")
        return None

    out = io.BytesIO()
    img.save(out, format="JPEG", quality=THUMBNAIL_QUALITY, optimize=True)
    return out.getvalue()


def generate_and_upload_thumbnail(document_id: int, pdf_bytes: bytes) -> str | None:
    """Render and store the thumbnail. Returns its public URL, or None on any failure."""
    jpeg = generate_pdf_thumbnail(pdf_bytes)
    if jpeg is None:
        return None
    try:
        url = storage.upload_file(jpeg, thumbnail_key(document_id), "image/jpeg")
    except storage.StorageError:
        logger.warning(f"Thumbnail upload failed for document {document_id}")
        return None
    logger.debug(f"Thumbnail stored for document {document_id} | size={len(jpeg)}")
    return url
