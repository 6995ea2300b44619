import logging
import re
from datetime import datetime, timezone

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from app.models.failed_search import FailedSearch

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def normalize_query(query: str) -> str:
    """Lowercase, collapse whitespace and drop punctuation so near-duplicates share a row."""
    collapsed = _WHITESPACE.sub(" ", query.lower().strip())
    return _NON_ALNUM.sub("", collapsed).strip()


def log_failed_search(
    db: Session,
    query: str,
    subject: str | None = None,
    medium: str | None = None,
    document_type: str | None = None,
) -> FailedSearch | None:
    """Record (or bump) a search that found nothing. Caller commits."""
    normalized = normalize_query(query)
    if not normalized:
        return None

    existing = db.query(FailedSearch).filter(FailedSearch.normalized_query == normalized).first()
    now = datetime.now(timezone.utc)
    if existing:
        existing.search_count = (existing.search_count or 0) + 1
        existing.last_searched_at = now
        logger.debug(f"Failed search bumped | query={normalized!r} | count={existing.search_count}")
        return existing

    failed = FailedSearch(
        query=query.strip(),
        normalized_query=normalized,
        subject=subject,
        medium=medium,
        document_type=document_type,
        search_count=1,
        last_searched_at=now,
    )
    db.add(failed)
    logger.debug(f"Failed search logged | query={normalized!r}")
    return failed


def get_suggested_query(db: Session, exclude_subject: str | None = None) -> FailedSearch | None:
    """Most-requested unresolved search, preferring other subjects than the one just downloaded."""
    query = db.query(FailedSearch).filter(FailedSearch.is_resolved == False)  # noqa: E712
    if exclude_subject:
        query = query.filter(
            or_(FailedSearch.subject.is_(None), FailedSearch.subject != exclude_subject)
        )
    return query.order_by(desc(FailedSearch.search_count), desc(FailedSearch.last_searched_at)).first()


def score_document(
    doc,
    normalized_query: str,
    matching_subject_ids: list[str],
    exact_subject_id: str | None,
) -> float:
    """Relevance of an approved document for a free-text search."""
    score = 0.0
    title = (doc.title or "").lower()
    description = (doc.description or "").lower()

    if exact_subject_id and doc.subject == exact_subject_id:
        score += 100
    if doc.subject in matching_subject_ids:
        score += 80

    if normalized_query in title:
        score += 60
        if title.startswith(normalized_query):
            score += 20

    title_words = title.split()
    matching_words = [
        qw for qw in normalized_query.split()
        if any(qw in tw or tw in qw for tw in title_words)
    ]
    score += len(matching_words) * 15

    if normalized_query in description:
        score += 30

    # Popularity bonuses are capped
    score += min((doc.downloads or 0) + (doc.views or 0) * 0.1, 20)
    score += min((doc.upvotes or 0) * 2, 10)
    return score
