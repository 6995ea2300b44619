"""
PDF conversion and sampling.

Every stored document is a PDF. Images, Word files and plain text are
converted on upload; long PDFs are cut down to a few sample pages before
being sent for AI categorization.
"""

import io
from dataclasses import dataclass

import PyPDF2
from docx import Document as WordDocument
from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from app.core.logging_config import get_logger

logger = get_logger(__name__)

PDF_MIME = "application/pdf"
WORD_MIMES = {
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
IMAGE_MARGIN = 40
TEXT_MARGIN = 50
FONT_NAME = "Helvetica"
FONT_SIZE = 12
LINE_HEIGHT = FONT_SIZE * 1.5

SAMPLE_THRESHOLD_PAGES = 5
TOKENS_PER_PAGE = 258  # Gemini's per-page PDF cost

MIME_BY_EXTENSION = {
    "pdf": PDF_MIME,
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "txt": "text/plain",
}


class PDFConversionError(Exception):
    """Raised when a file cannot be turned into a PDF."""
    pass


@dataclass
class ConversionResult:
    pdf_bytes: bytes
    original_format: str
    page_count: int


def is_pdf_file(mime_type: str) -> bool:
    return mime_type == PDF_MIME


def is_image_file(mime_type: str) -> bool:
    return mime_type.startswith("image/")


def is_word_document(mime_type: str) -> bool:
    return mime_type in WORD_MIMES


def is_text_file(mime_type: str) -> bool:
    return mime_type == "text/plain"


def is_valid_pdf(data: bytes) -> bool:
    return data[:5] == b"%PDF-"


def mime_type_for(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return MIME_BY_EXTENSION.get(ext, "application/octet-stream")


def get_page_count(data: bytes) -> int:
    try:
        return len(PyPDF2.PdfReader(io.BytesIO(data)).pages)
    except Exception as e:
        raise PDFConversionError(f"Unreadable PDF: {e}") from e


def images_to_pdf(images: list[bytes]) -> bytes:
    """One A4 page per image, scaled down (never up) to fit inside the margin and centered."""
    if not images:
        raise PDFConversionError("No images to convert")

    page_width, page_height = A4
    max_width = page_width - IMAGE_MARGIN * 2
    max_height = page_height - IMAGE_MARGIN * 2

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    for index, data in enumerate(images):
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except Exception as e:
            raise PDFConversionError(f"Image {index + 1} could not be read: {e}") from e
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        width, height = img.size
        scale = min(max_width / width, max_height / height, 1)
        draw_width, draw_height = width * scale, height * scale
        x = (page_width - draw_width) / 2
        y = (page_height - draw_height) / 2

        pdf.drawImage(ImageReader(img), x, y, width=draw_width, height=draw_height)
        pdf.showPage()
    pdf.save()

    logger.debug(f"Converted {len(images)} image(s) to PDF")
    return buffer.getvalue()


def _wrap_line(line: str, max_width: float) -> list[str]:
    wrapped: list[str] = []
    current = ""
    for word in line.split(" "):
        candidate = f"{current} {word}" if current else word
        if current and stringWidth(candidate, FONT_NAME, FONT_SIZE) > max_width:
            wrapped.append(current)
            current = word
        else:
            current = candidate
    wrapped.append(current)
    return wrapped


def text_to_pdf(text: str) -> bytes:
    """Helvetica 12 on A4, word-wrapped, paginated. Blank lines are kept."""
    try:
        text.encode("cp1252")
    except UnicodeEncodeError as e:
        # Standard Type 1 fonts only cover WinAnsi; Sinhala/Tamil need the original file
        raise PDFConversionError("Text contains characters the PDF font cannot render") from e

    page_width, page_height = A4
    max_width = page_width - TEXT_MARGIN * 2

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setFont(FONT_NAME, FONT_SIZE)
    y = page_height - TEXT_MARGIN

    for raw_line in text.replace("\r\n", "\n").split("\n"):
        for line in _wrap_line(raw_line, max_width):
            if y < TEXT_MARGIN:
                pdf.showPage()
                pdf.setFont(FONT_NAME, FONT_SIZE)
                y = page_height - TEXT_MARGIN
            if line:
                pdf.drawString(TEXT_MARGIN, y, line)
            y -= LINE_HEIGHT

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def extract_text_from_docx(data: bytes) -> str:
    try:
        doc = WordDocument(io.BytesIO(data))
    except Exception as e:
        raise PDFConversionError(f"Failed to read Word document: {e}") from e

    parts = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts)


def word_to_pdf(data: bytes) -> bytes:
    text = extract_text_from_docx(data)
    if not text.strip():
        raise PDFConversionError("Word document has no text")
    return text_to_pdf(text)


def convert_to_pdf(data: bytes, mime_type: str, filename: str = "") -> ConversionResult:
    """Normalize an upload to PDF. PDFs pass through untouched."""
    if is_pdf_file(mime_type):
        if not is_valid_pdf(data):
            raise PDFConversionError(f"{filename or 'File'} is not a valid PDF")
        return ConversionResult(data, "pdf", get_page_count(data))

    if is_image_file(mime_type):
        pdf_bytes = images_to_pdf([data])
        original_format = "image"
    elif is_word_document(mime_type):
        pdf_bytes = word_to_pdf(data)
        original_format = "word"
    elif is_text_file(mime_type):
        pdf_bytes = text_to_pdf(data.decode("utf-8", errors="replace"))
        original_format = "text"
    else:
        raise PDFConversionError(f"Unsupported file type: {mime_type}")

    logger.info(f"Converted {filename or mime_type} ({original_format}) to PDF | size={len(pdf_bytes)}")
    return ConversionResult(pdf_bytes, original_format, get_page_count(pdf_bytes))


# ── Sampling for AI categorization ──────────────────────────

def should_sample_pdf(page_count: int) -> bool:
    return page_count > SAMPLE_THRESHOLD_PAGES


def estimate_token_usage(page_count: int) -> int:
    return page_count * TOKENS_PER_PAGE


def sample_page_indexes(total_pages: int, max_pages: int = 3) -> list[int]:
    """First page, second page, and the middle page for longer documents (0-based)."""
    if total_pages <= max_pages:
        return list(range(total_pages))
    indexes = [0]
    if total_pages > 1:
        indexes.append(1)
    if max_pages >= 3 and total_pages > 4:
        indexes.append(total_pages // 2)
    return indexes


def _write_pages(reader: PyPDF2.PdfReader, indexes: list[int]) -> bytes:
    writer = PyPDF2.PdfWriter()
    for i in indexes:
        writer.add_page(reader.pages[i])
    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


def extract_sample_pages(data: bytes, max_pages: int = 3) -> list[tuple[int, bytes]]:
    """Each sampled page as its own single-page PDF, with 1-based page numbers."""
    reader = PyPDF2.PdfReader(io.BytesIO(data))
    indexes = sample_page_indexes(len(reader.pages), max_pages)
    return [(i + 1, _write_pages(reader, [i])) for i in indexes]


def create_sampled_pdf(data: bytes) -> bytes:
    """A single PDF holding the sampled pages. Short documents are returned as is."""
    reader = PyPDF2.PdfReader(io.BytesIO(data))
    total = len(reader.pages)
    if total <= 3:
        return data
    indexes = sample_page_indexes(total)
    logger.debug(f"Sampling PDF: {total} pages -> {len(indexes)} pages")
    return _write_pages(reader, indexes)
