"""
AI categorization of uploaded study materials.

Given a filename and (optionally) the file itself, ask the vision model for
subject, language, document type and a clean title. Any failure falls back
to a fixed default so the upload form always gets an answer.
"""

import base64
import json
import re

from app.core.logging_config import get_logger
from app.domains.documents.subjects import SUBJECTS, find_subject_id_from_display_name
from app.models.document import DocumentType, Medium
from app.services import openrouter_client, pdf_tools

logger = get_logger(__name__)

LANGUAGES = ["Sinhala", "English", "Tamil"]
DOCUMENT_TYPE_LABELS = ["Book", "Short Note", "Past Paper", "Mixed/Other"]

_TYPE_BY_LABEL = {
    "book": DocumentType.BOOK,
    "short note": DocumentType.SHORT_NOTE,
    "past paper": DocumentType.PAPER,
    "paper": DocumentType.PAPER,
}

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE = re.compile(r"```(?:json)?\s*|\s*```")

RESULT_KEYS = (
    "subject", "subjectConfidence", "language", "languageConfidence",
    "documentType", "documentTypeConfidence", "suggestedTitle",
)


def suggested_title_from_filename(file_name: str) -> str:
    stem = re.sub(r"\.[^/.]+$", "", file_name)
    return re.sub(r"[_-]", " ", stem)


def default_categorization(file_name: str) -> dict:
    return {
        "subject": "Mathematics",
        "subjectConfidence": 0.5,
        "language": "English",
        "languageConfidence": 0.5,
        "documentType": "Short Note",
        "documentTypeConfidence": 0.5,
        "suggestedTitle": suggested_title_from_filename(file_name),
    }


def build_prompt(file_name: str, has_document: bool) -> str:
    subject_names = ", ".join(s.display_name for s in SUBJECTS)
    if has_document:
        intro = "Analyze this document and determine:"
        guidance = (
            "Look at the document content carefully. Analyze any visible text, headings, "
            "or educational content to determine the subject and language."
        )
    else:
        intro = "Based on the filename, determine:"
        guidance = (
            "Use the filename to infer the subject and likely language. Common patterns: "
            "'Business' = Business & Accounting Studies, 'Maths/Math' = Mathematics, "
            "'Science' = Science. If the filename suggests Sinhala content use 'Sinhala', "
            "otherwise default to 'English'."
        )

    return f"""You are an AI assistant that categorizes educational documents for Sri Lankan O-Level students.

{intro}

1. SUBJECT: Which O-Level subject does this document belong to?
   Options: {subject_names}

2. LANGUAGE: What language is the document primarily written in?
   Options: {", ".join(LANGUAGES)}

3. DOCUMENT TYPE: What type of educational material is this?
   Options: {", ".join(DOCUMENT_TYPE_LABELS)}

4. SUGGESTED TITLE: Provide a clean, descriptive title for this document.

File Name: {file_name}

{guidance}

Respond ONLY in this exact JSON format (no markdown, no code blocks):
{{
  "subject": "subject name from the list",
  "subjectConfidence": 0.0 to 1.0,
  "language": "language from the list",
  "languageConfidence": 0.0 to 1.0,
  "documentType": "type from the list",
  "documentTypeConfidence": 0.0 to 1.0,
  "suggestedTitle": "Clean document title"
}}"""


def parse_categorization(text: str, file_name: str) -> dict:
    """Pull the JSON object out of a model reply. Missing fields come from the defaults."""
    defaults = default_categorization(file_name)
    cleaned = _CODE_FENCE.sub("", text).strip()
    match = _JSON_OBJECT.search(cleaned)
    if not match:
        raise ValueError("No JSON found in response")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("Categorization is not a JSON object")

    result = {key: parsed.get(key, defaults[key]) for key in RESULT_KEYS}
    for key in ("subjectConfidence", "languageConfidence", "documentTypeConfidence"):
        try:
            result[key] = max(0.0, min(1.0, float(result[key])))
        except (TypeError, ValueError):
            result[key] = defaults[key]
    if not str(result["suggestedTitle"]).strip():
        result["suggestedTitle"] = defaults["suggestedTitle"]
    return result


def resolve_ids(categorization: dict) -> dict:
    """Add enum values the upload form can submit directly."""
    subject_id = find_subject_id_from_display_name(str(categorization.get("subject", "")))
    language = str(categorization.get("language", "")).strip().lower()
    medium = language if language in {m.value for m in Medium} else Medium.ENGLISH.value
    doc_type = _TYPE_BY_LABEL.get(
        str(categorization.get("documentType", "")).strip().lower(), DocumentType.JUMBLED
    )
    return {
        **categorization,
        "subjectId": subject_id or "mathematics",
        "medium": medium,
        "type": doc_type.value,
    }


def prepare_document(file_content_b64: str, mime_type: str) -> tuple[str, str] | None:
    """Return (base64, mime) to attach to the prompt, sampling long PDFs. None on failure."""
    try:
        raw = base64.b64decode(file_content_b64, validate=False)
        if pdf_tools.is_pdf_file(mime_type):
            pdf_bytes = raw
        elif pdf_tools.is_word_document(mime_type):
            pdf_bytes = pdf_tools.convert_to_pdf(raw, mime_type).pdf_bytes
        else:
            # Images go to the model as is
            return file_content_b64, mime_type

        page_count = pdf_tools.get_page_count(pdf_bytes)
        if pdf_tools.should_sample_pdf(page_count):
            pdf_bytes = pdf_tools.create_sampled_pdf(pdf_bytes)
        logger.debug(
            f"Prepared PDF for categorization | pages={page_count} | "
            f"est_tokens={pdf_tools.estimate_token_usage(min(page_count, 3))}"
        )
        return base64.b64encode(pdf_bytes).decode("ascii"), pdf_tools.PDF_MIME
    except Exception as e:
        logger.warning(f"File processing for categorization failed, using filename only | error={e}")
        return None


def categorize_document(
    file_name: str,
    file_content_b64: str | None = None,
    mime_type: str | None = None,
) -> dict:
    """Categorize a document. Never raises; returns defaults when the model is unavailable."""
    defaults = resolve_ids(default_categorization(file_name))
    if not openrouter_client.is_configured():
        logger.warning("OPENROUTER_API_KEY not set, using default categorization")
        return defaults

    attachment = None
    if file_content_b64 and mime_type:
        attachment = prepare_document(file_content_b64, mime_type)

    prompt = build_prompt(file_name, has_document=attachment is not None)
    try:
        if attachment:
            reply = openrouter_client.call_openrouter_with_file(
                prompt, attachment[0], attachment[1], max_tokens=500, temperature=0.2,
            )
        else:
            reply = openrouter_client.call_openrouter(
                prompt, max_tokens=500, temperature=0.2,
            )
        result = resolve_ids(parse_categorization(reply, file_name))
    except Exception as e:
        logger.error(f"Categorization failed, using defaults | file={file_name} | error={e}")
        return defaults

    logger.info(
        f"Categorized {file_name} | subject={result['subjectId']} | "
        f"medium={result['medium']} | type={result['type']}"
    )
    return result
