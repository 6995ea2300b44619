from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import desc, or_
from sqlalchemy.orm import Session, joinedload

from app.core.logging_config import get_logger
from app.core.rate_limit import limiter
from app.core.utils import like_pattern
from app.db.database import get_db
from app.domains.documents.services import serialize_document
from app.domains.documents.subjects import find_subject_id_from_query
from app.models.document import Document, DocumentStatus, DocumentType, Medium
from app.schemas.common import ok
from app.schemas.search import FailedSearchCreate
from app.services import search_service

logger = get_logger(__name__)

router = APIRouter(prefix="/search", tags=["Search"])


@router.get("")
def search_documents(
    query: str | None = None,
    subject: str | None = None,
    medium: Medium | None = None,
    document_type: DocumentType | None = Query(None, alias="documentType"),
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Plain title/subject search ordered by downloads. Empty results are logged."""
    q = (
        db.query(Document)
        .options(joinedload(Document.uploader))
        .filter(Document.status == DocumentStatus.APPROVED)
    )
    if subject:
        q = q.filter(Document.subject == subject)
    if medium:
        q = q.filter(Document.medium == medium)
    if document_type:
        q = q.filter(Document.type == document_type)
    if query and query.strip():
        conditions = [Document.title.ilike(like_pattern(query.strip()), escape="\\")]
        subject_id = find_subject_id_from_query(query)
        if subject_id:
            conditions.append(Document.subject == subject_id)
        q = q.filter(or_(*conditions))

    total = q.count()
    docs = q.order_by(desc(Document.downloads), desc(Document.id)).offset(offset).limit(limit).all()

    if not docs and query and query.strip():
        search_service.log_failed_search(
            db,
            query,
            subject=subject,
            medium=medium.value if medium else None,
            document_type=document_type.value if document_type else None,
        )
        db.commit()

    return ok({
        "items": [serialize_document(d) for d in docs],
        "total": total,
        "page": offset // limit + 1,
        "limit": limit,
        "hasMore": len(docs) == limit,
    })


@router.post("/failed")
@limiter.limit("30/minute")
def log_failed_search(
    request: Request,
    data: FailedSearchCreate,
    db: Session = Depends(get_db),
):
    failed = search_service.log_failed_search(
        db, data.query, subject=data.subject, medium=data.medium, document_type=data.document_type,
    )
    db.commit()
    return ok({"logged": failed is not None})
