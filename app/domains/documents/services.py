"""Documents domain service - browsing, smart search, votes, saves and downloads."""

from typing import Optional

from fastapi import HTTPException
from sqlalchemy import case, desc, func, or_
from sqlalchemy.orm import Session, joinedload

from app.core.logging_config import get_logger
from app.core.utils import like_pattern
from app.domains.documents.subjects import find_matching_subject_ids, find_subject_id_from_query
from app.models.document import (
    Document, DocumentStatus, DocumentType, DocumentVote, UserDownload, UserSaved, VoteType,
)
from app.models.notification import NotificationType
from app.models.user import User
from app.services import notification_service, search_service, storage

logger = get_logger(__name__)

DOWNLOAD_MILESTONES = (10, 25, 50, 100, 250, 500, 1000)

SORT_COLUMNS = {
    "popular": Document.downloads,
    "downloads": Document.downloads,
    "upvotes": Document.upvotes,
    "newest": Document.created_at,
}


def serialize_document(doc: Document) -> dict:
    """Public shape of a document. The uploader is only ever shown by anon identity."""
    uploader = doc.uploader
    return {
        "id": doc.id,
        "title": doc.title,
        "description": doc.description,
        "uploader_id": doc.uploader_id,
        "uploader_name": uploader.anon_name if uploader and uploader.anon_name else "Anonymous",
        "uploader_avatar": uploader.anon_avatar_url if uploader else None,
        "subject": doc.subject,
        "medium": doc.medium.value if doc.medium else None,
        "type": doc.type.value if doc.type else None,
        "status": doc.status.value if doc.status else None,
        "rejection_reason": doc.rejection_reason,
        "upvotes": doc.upvotes or 0,
        "downvotes": doc.downvotes or 0,
        "views": doc.views or 0,
        "downloads": doc.downloads or 0,
        "file_path": doc.file_path or "",
        "file_size": doc.file_size or 0,
        "page_count": doc.page_count,
        "thumbnail_url": doc.thumbnail_url,
        "is_featured": bool(doc.is_featured),
        "is_trending": bool(doc.is_trending),
        "created_at": doc.created_at,
        "updated_at": doc.updated_at,
    }


def paginated(items: list, total: int, limit: int, offset: int) -> dict:
    return {
        "items": items,
        "total": total,
        "page": offset // limit + 1,
        "limit": limit,
        "hasMore": offset + limit < total,
    }


class DocumentService:
    """Business logic shared by the document, user and admin routes."""

    def __init__(self, db: Session):
        self.db = db

    def _approved(self):
        return (
            self.db.query(Document)
            .options(joinedload(Document.uploader))
            .filter(Document.status == DocumentStatus.APPROVED)
        )

    def get_or_404(self, document_id: int) -> Document:
        doc = (
            self.db.query(Document)
            .options(joinedload(Document.uploader))
            .filter(Document.id == document_id)
            .first()
        )
        if not doc:
            raise HTTPException(status_code=404, detail="Document not found")
        return doc

    # ── Listing and search ──────────────────────────────────

    def list_documents(
        self,
        *,
        query: Optional[str] = None,
        subject: Optional[str] = None,
        medium: Optional[str] = None,
        document_type: Optional[str] = None,
        sort_by: str = "popular",
        limit: int = 20,
        offset: int = 0,
    ) -> dict:
        q = self._approved()
        if subject:
            q = q.filter(Document.subject == subject)
        if medium:
            q = q.filter(Document.medium == medium)
        if document_type:
            q = q.filter(Document.type == document_type)

        if query and query.strip():
            return self._smart_search(q, query, limit, offset)

        total = q.count()
        column = SORT_COLUMNS.get(sort_by, Document.downloads)
        docs = q.order_by(desc(column), desc(Document.id)).offset(offset).limit(limit).all()
        return paginated([serialize_document(d) for d in docs], total, limit, offset)

    def _smart_search(self, q, query: str, limit: int, offset: int) -> dict:
        """Fetch every candidate, score in Python, then paginate."""
        normalized = query.lower().strip()
        matching_subject_ids = find_matching_subject_ids(normalized)
        exact_subject_id = find_subject_id_from_query(normalized)

        pattern = like_pattern(query.strip())
        conditions = [
            Document.title.ilike(pattern, escape="\\"),
            Document.description.ilike(pattern, escape="\\"),
        ]
        if matching_subject_ids:
            conditions.append(Document.subject.in_(matching_subject_ids))
        candidates = q.filter(or_(*conditions)).all()

        scored = [
            (search_service.score_document(d, normalized, matching_subject_ids, exact_subject_id), d)
            for d in candidates
        ]
        scored.sort(key=lambda pair: (pair[0], pair[1].downloads or 0), reverse=True)

        page = [serialize_document(d) for _, d in scored[offset:offset + limit]]
        logger.debug(
            f"Smart search | query={normalized!r} | subjects={matching_subject_ids} | hits={len(scored)}"
        )
        return paginated(page, len(scored), limit, offset)

    def count_documents(
        self,
        *,
        query: Optional[str] = None,
        subject: Optional[str] = None,
        medium: Optional[str] = None,
    ) -> dict:
        """Per-type totals for the browse tabs. The literal "all" means no filter."""
        q = self.db.query(Document.type).filter(Document.status == DocumentStatus.APPROVED)
        if subject and subject != "all":
            q = q.filter(Document.subject == subject)
        if medium and medium != "all":
            q = q.filter(Document.medium == medium)
        if query and query.strip():
            conditions = [Document.title.ilike(like_pattern(query.strip()), escape="\\")]
            subject_id = find_subject_id_from_query(query)
            if subject_id:
                conditions.append(Document.subject == subject_id)
            q = q.filter(or_(*conditions))

        types = [row[0] for row in q.all()]
        return {
            "total": len(types),
            "books": sum(1 for t in types if t == DocumentType.BOOK),
            "shortNotes": sum(1 for t in types if t == DocumentType.SHORT_NOTE),
            "papers": sum(1 for t in types if t == DocumentType.PAPER),
        }

    # ── Engagement ──────────────────────────────────────────

    def _increment(self, doc: Document, **deltas: int) -> dict:
        """Apply counter deltas in SQL and read the new values back, clamped at zero."""
        values = {}
        for name, delta in deltas.items():
            column = getattr(Document, name)
            bumped = func.coalesce(column, 0) + delta
            values[column] = case((bumped < 0, 0), else_=bumped) if delta < 0 else bumped
        self.db.query(Document).filter(Document.id == doc.id).update(values, synchronize_session=False)
        row = (
            self.db.query(*(getattr(Document, name) for name in deltas))
            .filter(Document.id == doc.id)
            .one()
        )
        return dict(zip(deltas, row))

    def record_view(self, doc: Document) -> int:
        views = self._increment(doc, views=1)["views"]
        self.db.commit()
        return views

    def apply_vote(self, user: User, doc: Document, vote_type: VoteType) -> dict:
        """Toggle a vote: add it, remove it if repeated, or switch sides."""
        existing = (
            self.db.query(DocumentVote)
            .filter(DocumentVote.user_id == user.id, DocumentVote.document_id == doc.id)
            .first()
        )
        deltas = {"upvotes": 0, "downvotes": 0}
        column_for = {VoteType.UPVOTE: "upvotes", VoteType.DOWNVOTE: "downvotes"}

        if existing is None:
            self.db.add(DocumentVote(user_id=user.id, document_id=doc.id, vote_type=vote_type))
            deltas[column_for[vote_type]] += 1
            user_vote = vote_type
        elif existing.vote_type == vote_type:
            self.db.delete(existing)
            deltas[column_for[vote_type]] -= 1
            user_vote = None
        else:
            deltas[column_for[existing.vote_type]] -= 1
            existing.vote_type = vote_type
            deltas[column_for[vote_type]] += 1
            user_vote = vote_type

        counts = self._increment(doc, **deltas)
        self.db.commit()
        return {
            "upvotes": counts["upvotes"],
            "downvotes": counts["downvotes"],
            "user_vote": user_vote.value if user_vote else None,
        }

    def get_user_vote(self, user: Optional[User], document_id: int) -> Optional[str]:
        if user is None:
            return None
        vote = (
            self.db.query(DocumentVote)
            .filter(DocumentVote.user_id == user.id, DocumentVote.document_id == document_id)
            .first()
        )
        return vote.vote_type.value if vote else None

    def is_saved(self, user: User, document_id: int) -> bool:
        return (
            self.db.query(UserSaved)
            .filter(UserSaved.user_id == user.id, UserSaved.document_id == document_id)
            .first()
            is not None
        )

    def toggle_save(self, user: User, doc: Document) -> bool:
        saved = (
            self.db.query(UserSaved)
            .filter(UserSaved.user_id == user.id, UserSaved.document_id == doc.id)
            .first()
        )
        if saved:
            self.db.delete(saved)
            self.db.commit()
            return False
        self.db.add(UserSaved(user_id=user.id, document_id=doc.id))
        self.db.commit()
        return True

    def record_download(self, user: User, doc: Document) -> dict:
        """Count a download, notify the uploader on milestones and suggest a missing upload."""
        download = (
            self.db.query(UserDownload)
            .filter(UserDownload.user_id == user.id, UserDownload.document_id == doc.id)
            .first()
        )
        if download is None:
            self.db.add(UserDownload(user_id=user.id, document_id=doc.id))

        count = self._increment(doc, downloads=1)["downloads"]

        if count in DOWNLOAD_MILESTONES and doc.uploader_id:
            notification_service.create_notification(
                self.db,
                user_id=doc.uploader_id,
                type=NotificationType.DOWNLOAD_MILESTONE,
                title="🎉 Milestone Reached!",
                message=(
                    f'Your "{doc.title}" just hit {count} downloads! '
                    "You're helping so many students!"
                ),
                link=f"/doc/{doc.id}",
            )

        self.db.commit()
        self.db.refresh(doc)

        suggestion = search_service.get_suggested_query(self.db, exclude_subject=doc.subject)
        return {
            "url": doc.file_path,
            "document": serialize_document(doc),
            "suggestion": {
                "id": suggestion.id,
                "query": suggestion.query,
                "subject": suggestion.subject,
                "medium": suggestion.medium,
                "document_type": suggestion.document_type,
                "search_count": suggestion.search_count,
            } if suggestion else None,
        }

    def delete_document(self, user: User, doc: Document) -> None:
        """Delete a document and its file. Only the uploader or an admin may do this."""
        if doc.uploader_id != user.id and not user.is_admin:
            raise HTTPException(status_code=403, detail="Permission denied")

        if doc.file_path:
            try:
                storage.delete_file(storage.key_from_url(doc.file_path))
            except storage.StorageError:
                logger.warning(f"Could not delete file for document {doc.id}, removing row anyway")

        document_id = doc.id
        self.db.delete(doc)
        self.db.commit()
        logger.info(f"Document {document_id} deleted by user {user.id}")
