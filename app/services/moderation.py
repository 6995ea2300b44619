"""
Sentiment moderation for thank-you messages.

Positive and neutral messages are delivered immediately; negative and
inappropriate ones wait for an admin. If the model is missing or misbehaves
the message is approved so students are never blocked.
"""

import json
import re
from dataclasses import dataclass

from app.core.logging_config import get_logger
from app.models.thank_you import SentimentCategory
from app.services import openrouter_client

logger = get_logger(__name__)

AUTO_APPROVE = {SentimentCategory.POSITIVE, SentimentCategory.NEUTRAL}

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


@dataclass
class ModerationResult:
    category: SentimentCategory
    confidence: float
    reasoning: str
    should_auto_approve: bool


def build_moderation_prompt(message: str) -> str:
    return f"""You are a content moderation AI for a knowledge-sharing platform where students send thank-you messages to document uploaders. Analyze the sentiment and appropriateness of the message below.

Categorize it into ONE of these categories:

1. positive: Genuinely grateful, appreciative, encouraging messages ("Thank you so much for sharing this!", "This helped me a lot!")
2. neutral: Polite but generic messages without strong emotion ("Thanks", "Noted", "Received")
3. negative: Criticism, frustration, disappointment, or a passive-aggressive tone ("Thanks but this wasn't helpful", "Not what I expected")
4. inappropriate: Offensive language, threats, spam, harassment, profanity, sexual content, or unrelated content such as advertisements

Guidelines:
- Be sensitive to cultural differences and language variations (messages may be in Sinhala, Tamil or English)
- Consider the context of educational content sharing
- When in doubt between two categories, choose the more cautious one

Message to analyze:
"{message}"

Response format (JSON only, no markdown):
{{
  "category": "positive|neutral|negative|inappropriate",
  "confidence": 0.0-1.0,
  "reasoning": "Brief explanation (1-2 sentences)"
}}"""


def parse_moderation(text: str) -> ModerationResult:
    match = _JSON_OBJECT.search(text)
    if not match:
        raise ValueError("Failed to parse AI response")
    parsed = json.loads(match.group(0))

    try:
        category = SentimentCategory(parsed.get("category"))
    except ValueError:
        raise ValueError(f"Invalid category: {parsed.get('category')}")

    confidence = parsed.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not 0 <= confidence <= 1:
        raise ValueError(f"Invalid confidence: {confidence}")

    return ModerationResult(
        category=category,
        confidence=float(confidence),
        reasoning=parsed.get("reasoning") or "No reasoning provided",
        should_auto_approve=category in AUTO_APPROVE,
    )


def moderate_thank_you_message(message: str) -> ModerationResult:
    if not openrouter_client.is_configured():
        logger.warning("OPENROUTER_API_KEY not set - auto-approving thank-you message")
        return ModerationResult(
            category=SentimentCategory.POSITIVE,
            confidence=1.0,
            reasoning="Auto-approved: AI moderation not configured (missing API key)",
            should_auto_approve=True,
        )

    try:
        reply = openrouter_client.call_openrouter(build_moderation_prompt(message))
        result = parse_moderation(reply)
    except Exception as e:
        logger.error(f"AI moderation error, auto-approving | error={e}")
        return ModerationResult(
            category=SentimentCategory.POSITIVE,
            confidence=0.7,
            reasoning="Auto-approved: AI moderation failed (see logs for details)",
            should_auto_approve=True,
        )

    logger.info(
        f"Moderated thank-you message | category={result.category.value} | "
        f"confidence={result.confidence:.2f}"
    )
    return result
