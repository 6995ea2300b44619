import base64
import json

import pytest

from app.services import categorization


REPLY = json.dumps({
    "subject": "Business & Accounting Studies",
    "subjectConfidence": 0.92,
    "language": "Sinhala",
    "languageConfidence": 0.8,
    "documentType": "Past Paper",
    "documentTypeConfidence": 1.4,
    "suggestedTitle": "2019 Commerce Paper",
})


class TestParsing:
    def test_plain_json(self):
        result = categorization.parse_categorization(REPLY, "paper.pdf")
        assert result["subject"] == "Business & Accounting Studies"
        assert result["suggestedTitle"] == "2019 Commerce Paper"

    def test_confidence_is_clamped(self):
        result = categorization.parse_categorization(REPLY, "paper.pdf")
        assert result["documentTypeConfidence"] == 1.0

    def test_code_fence_and_chatter(self):
        text = f"Sure! Here you go:\n```json\n{REPLY}\n```"
        assert categorization.parse_categorization(text, "paper.pdf")["language"] == "Sinhala"

    def test_missing_fields_use_defaults(self):
        result = categorization.parse_categorization('{"subject": "History"}', "ol_history-notes.pdf")
        assert result["subject"] == "History"
        assert result["language"] == "English"
        assert result["suggestedTitle"] == "ol history notes"

    def test_no_json(self):
        with pytest.raises(ValueError):
            categorization.parse_categorization("I cannot help with that", "x.pdf")


class TestResolveIds:
    def test_maps_labels_to_ids(self):
        result = categorization.resolve_ids(categorization.parse_categorization(REPLY, "paper.pdf"))
        assert result["subjectId"] == "business_accounting"
        assert result["medium"] == "sinhala"
        assert result["type"] == "paper"

    def test_unknown_values_fall_back(self):
        result = categorization.resolve_ids({
            "subject": "Astrology", "language": "French", "documentType": "Mixed/Other",
        })
        assert result["subjectId"] == "mathematics"
        assert result["medium"] == "english"
        assert result["type"] == "jumbled"


class TestCategorizeDocument:
    def test_without_api_key_returns_defaults(self, monkeypatch):
        monkeypatch.setattr(categorization.openrouter_client, "is_configured", lambda: False)
        result = categorization.categorize_document("Grade_11-Science.pdf")
        assert result["subjectId"] == "mathematics"
        assert result["suggestedTitle"] == "Grade 11 Science"
        assert result["subjectConfidence"] == 0.5

    def test_filename_only_prompt(self, monkeypatch):
        prompts = []

        def fake_call(prompt, **kwargs):
            prompts.append(prompt)
            return REPLY

        monkeypatch.setattr(categorization.openrouter_client, "is_configured", lambda: True)
        monkeypatch.setattr(categorization.openrouter_client, "call_openrouter", fake_call)
        result = categorization.categorize_document("commerce_2019.pdf")
        assert result["subjectId"] == "business_accounting"
        assert "Based on the filename" in prompts[0]

    def test_pdf_attached_to_vision_call(self, monkeypatch, pdf_bytes):
        calls = []

        def fake_call_with_file(prompt, file_b64, mime_type, **kwargs):
            calls.append(mime_type)
            assert base64.b64decode(file_b64)[:5] == b"%PDF-"
            return REPLY

        monkeypatch.setattr(categorization.openrouter_client, "is_configured", lambda: True)
        monkeypatch.setattr(categorization.openrouter_client, "call_openrouter_with_file", fake_call_with_file)
        result = categorization.categorize_document(
            "notes.pdf", base64.b64encode(pdf_bytes).decode(), "application/pdf",
        )
        assert calls == ["application/pdf"]
        assert result["type"] == "paper"

    def test_model_failure_returns_defaults(self, monkeypatch):
        def broken(prompt, **kwargs):
            raise categorization.openrouter_client.OpenRouterError("502")

        monkeypatch.setattr(categorization.openrouter_client, "is_configured", lambda: True)
        monkeypatch.setattr(categorization.openrouter_client, "call_openrouter", broken)
        result = categorization.categorize_document("biology.pdf")
        assert result["subject"] == "Mathematics"
        assert result["suggestedTitle"] == "biology"
