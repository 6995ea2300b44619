import io

import pytest
from docx import Document as WordDocument
from PIL import Image

from app.services import pdf_tools


def _png(width=800, height=1200, mode="RGBA"):
    buf = io.BytesIO()
    Image.new(mode, (width, height), color=(200, 30, 30, 255) if mode == "RGBA" else "white").save(buf, format="PNG")
    return buf.getvalue()


def _docx(*paragraphs):
    doc = WordDocument()
    for text in paragraphs:
        doc.add_paragraph(text)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def _long_pdf(lines=500):
    return pdf_tools.text_to_pdf("\n".join(f"Revision line {i}" for i in range(lines)))


# ── Detection ─────────────────────────────────────────────────

class TestMimeTypes:
    def test_mime_type_for_known_extensions(self):
        assert pdf_tools.mime_type_for("notes.PDF") == "application/pdf"
        assert pdf_tools.mime_type_for("scan.jpeg") == "image/jpeg"
        assert pdf_tools.is_word_document(pdf_tools.mime_type_for("essay.docx"))

    def test_unknown_extension(self):
        assert pdf_tools.mime_type_for("archive") == "application/octet-stream"

    def test_pdf_header_check(self, pdf_bytes):
        assert pdf_tools.is_valid_pdf(pdf_bytes)
        assert not pdf_tools.is_valid_pdf(b"PK\x03\x04")


# ── Conversion ────────────────────────────────────────────────

class TestConversion:
    def test_pdf_passes_through(self, pdf_bytes):
        result = pdf_tools.convert_to_pdf(pdf_bytes, "application/pdf", "notes.pdf")
        assert result.pdf_bytes == pdf_bytes
        assert result.original_format == "pdf"
        assert result.page_count == 3

    def test_invalid_pdf_rejected(self):
        with pytest.raises(pdf_tools.PDFConversionError):
            pdf_tools.convert_to_pdf(b"not a pdf", "application/pdf", "fake.pdf")

    def test_image_becomes_single_page(self):
        result = pdf_tools.convert_to_pdf(_png(), "image/png", "page.png")
        assert result.original_format == "image"
        assert result.page_count == 1
        assert pdf_tools.is_valid_pdf(result.pdf_bytes)

    def test_images_to_pdf_one_page_each(self):
        pdf = pdf_tools.images_to_pdf([_png(), _png(300, 200, mode="RGB")])
        assert pdf_tools.get_page_count(pdf) == 2

    def test_images_to_pdf_requires_images(self):
        with pytest.raises(pdf_tools.PDFConversionError):
            pdf_tools.images_to_pdf([])

    def test_unreadable_image(self):
        with pytest.raises(pdf_tools.PDFConversionError):
            pdf_tools.images_to_pdf([b"garbage"])

    def test_word_document(self):
        result = pdf_tools.convert_to_pdf(
            _docx("Photosynthesis", "Plants convert light into energy."),
            pdf_tools.mime_type_for("bio.docx"),
            "bio.docx",
        )
        assert result.original_format == "word"
        assert result.page_count == 1

    def test_empty_word_document(self):
        with pytest.raises(pdf_tools.PDFConversionError, match="no text"):
            pdf_tools.word_to_pdf(_docx())

    def test_word_tables_are_extracted(self):
        doc = WordDocument()
        table = doc.add_table(rows=1, cols=2)
        table.rows[0].cells[0].text = "Term"
        table.rows[0].cells[1].text = "Definition"
        buf = io.BytesIO()
        doc.save(buf)
        assert "Term | Definition" in pdf_tools.extract_text_from_docx(buf.getvalue())

    def test_plain_text(self):
        result = pdf_tools.convert_to_pdf(b"Short note\n\nLine two", "text/plain", "note.txt")
        assert result.original_format == "text"
        assert result.page_count == 1

    def test_long_text_paginates(self):
        assert pdf_tools.get_page_count(_long_pdf()) > 5

    def test_text_outside_font_rejected(self):
        with pytest.raises(pdf_tools.PDFConversionError):
            pdf_tools.text_to_pdf("ගණිතය")

    def test_unsupported_type(self):
        with pytest.raises(pdf_tools.PDFConversionError, match="Unsupported"):
            pdf_tools.convert_to_pdf(b"\x00\x01", "application/zip", "x.zip")


# ── Sampling ──────────────────────────────────────────────────

class TestSampling:
    def test_threshold(self):
        assert not pdf_tools.should_sample_pdf(5)
        assert pdf_tools.should_sample_pdf(6)

    def test_token_estimate(self):
        assert pdf_tools.estimate_token_usage(3) == 774

    @pytest.mark.parametrize("total,expected", [
        (1, [0]),
        (3, [0, 1, 2]),
        (4, [0, 1]),
        (10, [0, 1, 5]),
    ])
    def test_sample_page_indexes(self, total, expected):
        assert pdf_tools.sample_page_indexes(total) == expected

    def test_short_pdf_not_sampled(self, pdf_bytes):
        assert pdf_tools.create_sampled_pdf(pdf_bytes) == pdf_bytes

    def test_long_pdf_sampled_to_three_pages(self):
        assert pdf_tools.get_page_count(pdf_tools.create_sampled_pdf(_long_pdf())) == 3

    def test_extract_sample_pages_numbers(self):
        long_pdf = _long_pdf()
        total = pdf_tools.get_page_count(long_pdf)
        pages = pdf_tools.extract_sample_pages(long_pdf)
        assert [n for n, _ in pages] == [1, 2, total // 2 + 1]
        assert all(pdf_tools.get_page_count(p) == 1 for _, p in pages)
