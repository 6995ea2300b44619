import io
import re
import zipfile
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session, joinedload

from app.api.deps import require_admin
from app.core.logging_config import get_logger
from app.core.utils import like_pattern
from app.db.database import get_db
from app.domains.documents.services import DocumentService, serialize_document
from app.domains.documents.subjects import is_valid_subject
from app.models.audit_log import AuditAction, AuditLog
from app.models.comment import Comment
from app.models.document import Document, DocumentStatus, DocumentType, Medium, UserDownload
from app.models.notification import NotificationType
from app.models.pending_image import ImageBatchStatus, PendingImageBatch
from app.models.recommendation import Recommendation, RecommendationStatus
from app.models.thank_you import ThankYouMessage, ThankYouStatus
from app.models.user import User
from app.schemas.admin import (
    AdminStats, BackfillRequest, CategorizeDocumentRequest, ComplementCreate,
    RejectRequest, UploadStatusUpdate,
)
from app.schemas.audit import AuditLogList, AuditLogResponse
from app.schemas.comment import CommentResponse
from app.schemas.common import ok
from app.schemas.recommendation import RecommendationResponse, RecommendationUpdate
from app.schemas.thank_you import ThankYouReview
from app.schemas.user import UserResponse
from app.services import notification_service, pdf_tools, settings_service, storage, thumbnails
from app.services.audit_service import log_action

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

DEFAULT_REJECTION_REASON = "Does not meet quality standards"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _user_brief(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email, "avatar_url": user.avatar_url}


def _upload_counts(db: Session, user_ids: set[int]) -> dict[int, int]:
    if not user_ids:
        return {}
    rows = (
        db.query(Document.uploader_id, func.count(Document.id))
        .filter(Document.uploader_id.in_(user_ids))
        .group_by(Document.uploader_id)
        .all()
    )
    return dict(rows)


def _download_counts(db: Session, user_ids: set[int]) -> dict[int, int]:
    if not user_ids:
        return {}
    rows = (
        db.query(UserDownload.user_id, func.count(UserDownload.id))
        .filter(UserDownload.user_id.in_(user_ids))
        .group_by(UserDownload.user_id)
        .all()
    )
    return dict(rows)


# ── Overview ────────────────────────────────────────────────

@router.get("/stats")
def get_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Get platform statistics."""
    approved = db.query(Document).filter(Document.status == DocumentStatus.APPROVED)
    stats = AdminStats(
        totalDocuments=approved.count(),
        totalUsers=db.query(User).count(),
        totalDownloads=int(
            db.query(func.coalesce(func.sum(Document.downloads), 0))
            .filter(Document.status == DocumentStatus.APPROVED)
            .scalar() or 0
        ),
        pendingReview=db.query(Document).filter(Document.status == DocumentStatus.PENDING).count(),
        downvotedDocuments=approved.filter(Document.downvotes > 0).count(),
    )
    return ok(stats)


@router.get("/pending")
def list_pending(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Documents awaiting moderation, oldest first."""
    docs = (
        db.query(Document)
        .options(joinedload(Document.uploader))
        .filter(Document.status == DocumentStatus.PENDING)
        .order_by(Document.created_at.asc(), Document.id.asc())
        .all()
    )
    counts = _upload_counts(db, {d.uploader_id for d in docs if d.uploader_id})
    return ok([
        {**serialize_document(d), "uploader_total_uploads": counts.get(d.uploader_id, 0)}
        for d in docs
    ])


@router.get("/downvoted")
def list_downvoted(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    docs = (
        db.query(Document)
        .options(joinedload(Document.uploader))
        .filter(Document.status == DocumentStatus.APPROVED, Document.downvotes > 0)
        .order_by(desc(Document.downvotes), desc(Document.id))
        .all()
    )
    items = []
    for d in docs:
        up, down = d.upvotes or 0, d.downvotes or 0
        ratio = round(down / (up + down) * 100, 1) if up > 0 else 100
        items.append({**serialize_document(d), "downvote_ratio": ratio})
    return ok(items)


# ── Document moderation ─────────────────────────────────────

@router.post("/documents/{document_id}/approve")
def approve_document(
    document_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Publish a document, moving its file out of the pending folder first."""
    doc = DocumentService(db).get_or_404(document_id)

    key = storage.key_from_url(doc.file_path)
    if key.startswith(f"{storage.PENDING_FOLDER}/"):
        new_key = f"{storage.DOCUMENTS_FOLDER}/{key.split('/', 1)[1]}"
        try:
            doc.file_path = storage.copy_file(key, new_key)
            storage.delete_file(key)
        except storage.StorageError:
            logger.error(f"Failed to move file for document {doc.id}, keeping pending path")

    doc.status = DocumentStatus.APPROVED
    doc.rejection_reason = None
    doc.needs_admin_review = False

    if doc.uploader_id:
        notification_service.create_notification(
            db,
            user_id=doc.uploader_id,
            type=NotificationType.UPLOAD_PROCESSED,
            title="✅ Document Approved!",
            message=f'Your "{doc.title}" is now live and helping students!',
            link=f"/doc/{doc.id}",
        )
    log_action(
        db, user_id=current_user.id, action=AuditAction.DOCUMENT_APPROVE,
        resource_type="document", resource_id=doc.id, request=request,
    )
    db.commit()
    db.refresh(doc)
    logger.info(f"Document {doc.id} approved by admin {current_user.id}")
    return ok(serialize_document(doc), message="Document approved")


@router.post("/documents/{document_id}/reject")
def reject_document(
    document_id: int,
    request: Request,
    data: RejectRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    doc = DocumentService(db).get_or_404(document_id)
    reason = (data.reason.strip() if data and data.reason else "") or DEFAULT_REJECTION_REASON

    if doc.file_path:
        try:
            storage.delete_file(storage.key_from_url(doc.file_path))
        except storage.StorageError:
            logger.warning(f"Could not delete file for rejected document {doc.id}")

    doc.status = DocumentStatus.REJECTED
    doc.rejection_reason = reason

    if doc.uploader_id:
        notification_service.create_notification(
            db,
            user_id=doc.uploader_id,
            type=NotificationType.DOCUMENT_REJECTED,
            title="Upload Update",
            message=(
                f'We really appreciate your effort to share "{doc.title}"! '
                f"Unfortunately it could not be published: {reason}. Keep sharing!"
            ),
            link="/dashboard",
            force=True,
        )
    log_action(
        db, user_id=current_user.id, action=AuditAction.DOCUMENT_REJECT,
        resource_type="document", resource_id=doc.id, details={"reason": reason}, request=request,
    )
    db.commit()
    db.refresh(doc)
    logger.info(f"Document {doc.id} rejected by admin {current_user.id} | reason={reason}")
    return ok(serialize_document(doc), message="Document rejected")


@router.patch("/documents/{document_id}/categorize")
def categorize_document(
    document_id: int,
    data: CategorizeDocumentRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    if not is_valid_subject(data.subject):
        raise HTTPException(status_code=400, detail=f"Invalid subject: {data.subject}")
    doc = DocumentService(db).get_or_404(document_id)

    doc.type = data.document_type
    doc.subject = data.subject
    doc.medium = data.medium
    if data.title and data.title.strip():
        doc.title = data.title.strip()
    doc.needs_admin_review = False

    log_action(
        db, user_id=current_user.id, action=AuditAction.DOCUMENT_CATEGORIZE,
        resource_type="document", resource_id=doc.id,
        details={"type": data.document_type.value, "subject": data.subject, "medium": data.medium.value},
        request=request,
    )
    db.commit()
    db.refresh(doc)
    return ok(serialize_document(doc), message="Document updated")


@router.delete("/documents/{document_id}")
def delete_document(
    document_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    service = DocumentService(db)
    doc = service.get_or_404(document_id)
    log_action(
        db, user_id=current_user.id, action=AuditAction.DOCUMENT_DELETE,
        resource_type="document", resource_id=doc.id, details={"title": doc.title}, request=request,
    )
    service.delete_document(current_user, doc)
    return ok(message="Document deleted")


@router.post("/complement")
def send_complement(
    data: ComplementCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Post a comment under a display name of the admin's choosing and notify the uploader."""
    doc = DocumentService(db).get_or_404(data.document_id)
    recipient = db.query(User).filter(User.id == data.user_id).first()
    if not recipient:
        raise HTTPException(status_code=404, detail="User not found")

    comment = Comment(
        document_id=doc.id,
        sender_id=None,
        recipient_id=recipient.id,
        admin_name=data.sender_display_name.strip(),
        is_admin_complement=True,
        happiness_level=data.happiness_level,
        message=data.message.strip(),
    )
    db.add(comment)
    notification_service.create_notification(
        db,
        user_id=recipient.id,
        type=NotificationType.COMPLEMENT,
        title=f"{data.happiness_level.emoji} {comment.admin_name} loved your notes!",
        message=f'"{comment.message}" on your "{doc.title}"',
        link=f"/doc/{doc.id}",
        force=True,
    )
    db.flush()
    log_action(
        db, user_id=current_user.id, action=AuditAction.COMPLEMENT_SEND,
        resource_type="comment", resource_id=comment.id,
        details={"document_id": doc.id, "recipient_id": recipient.id}, request=request,
    )
    db.commit()
    db.refresh(comment)
    return ok(CommentResponse.model_validate(comment), message="Complement sent successfully")


# ── Users ───────────────────────────────────────────────────

@router.get("/users")
def list_users(
    search: str | None = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """List all users with optional search on name and email."""
    query = db.query(User)
    if search and search.strip():
        pattern = like_pattern(search.strip())
        query = query.filter(
            or_(User.name.ilike(pattern, escape="\\"), User.email.ilike(pattern, escape="\\"))
        )

    total = query.count()
    users = query.order_by(desc(User.created_at), desc(User.id)).offset(offset).limit(limit).all()

    ids = {u.id for u in users}
    uploads = _upload_counts(db, ids)
    downloads = _download_counts(db, ids)
    items = [
        {
            **UserResponse.model_validate(u).model_dump(),
            "uploads_count": uploads.get(u.id, 0),
            "downloads_count": downloads.get(u.id, 0),
        }
        for u in users
    ]
    return ok({"users": items, "total": total, "limit": limit, "offset": offset})


@router.get("/users/{user_id}")
def get_user_detail(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    uploads = (
        db.query(Document)
        .options(joinedload(Document.uploader))
        .filter(Document.uploader_id == user.id)
        .order_by(desc(Document.created_at), desc(Document.id))
        .all()
    )
    downloads = (
        db.query(UserDownload)
        .options(joinedload(UserDownload.document).joinedload(Document.uploader))
        .filter(UserDownload.user_id == user.id)
        .order_by(desc(UserDownload.downloaded_at), desc(UserDownload.id))
        .all()
    )
    sent = (
        db.query(Comment).filter(Comment.sender_id == user.id)
        .order_by(desc(Comment.created_at), desc(Comment.id)).all()
    )
    received = (
        db.query(Comment).filter(Comment.recipient_id == user.id)
        .order_by(desc(Comment.created_at), desc(Comment.id)).all()
    )
    return ok({
        "user": UserResponse.model_validate(user),
        "uploads": [serialize_document(d) for d in uploads],
        "downloads": [
            {**serialize_document(d.document), "downloaded_at": d.downloaded_at, "has_commented": bool(d.has_commented)}
            for d in downloads if d.document is not None
        ],
        "commentsSent": [CommentResponse.model_validate(c) for c in sent],
        "commentsReceived": [CommentResponse.model_validate(c) for c in received],
    })


# ── Thank-you moderation ────────────────────────────────────

@router.get("/thank-you-messages")
def list_thank_you_messages(
    status_filter: ThankYouStatus = Query(ThankYouStatus.PENDING_REVIEW, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    query = db.query(ThankYouMessage).filter(ThankYouMessage.status == status_filter)
    total = query.count()
    messages = (
        query.options(
            joinedload(ThankYouMessage.sender),
            joinedload(ThankYouMessage.recipient),
            joinedload(ThankYouMessage.document),
        )
        .order_by(desc(ThankYouMessage.created_at), desc(ThankYouMessage.id))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    items = [
        {
            "id": m.id,
            "message": m.message,
            "admin_edited_message": m.admin_edited_message,
            "status": m.status.value,
            "sentiment_category": m.sentiment_category.value if m.sentiment_category else None,
            "ai_confidence": m.ai_confidence,
            "ai_reasoning": m.ai_reasoning,
            "created_at": m.created_at,
            "reviewed_at": m.reviewed_at,
            "sender": _user_brief(m.sender),
            "recipient": _user_brief(m.recipient),
            "document": {
                "id": m.document.id, "title": m.document.title,
                "subject": m.document.subject, "type": m.document.type.value,
            } if m.document else None,
        }
        for m in messages
    ]
    return ok({
        "messages": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    })


@router.post("/thank-you-messages/{message_id}/review")
def review_thank_you_message(
    message_id: int,
    data: ThankYouReview,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    message = db.query(ThankYouMessage).filter(ThankYouMessage.id == message_id).first()
    if not message:
        raise HTTPException(status_code=404, detail="Thank you message not found")
    if message.status != ThankYouStatus.PENDING_REVIEW:
        raise HTTPException(status_code=400, detail="Message already reviewed")

    message.reviewed_by = current_user.id
    message.reviewed_at = _now()
    if data.action == "reject":
        message.status = ThankYouStatus.REJECTED
        result_message = "Message rejected (silent)"
    else:
        message.status = ThankYouStatus.APPROVED
        if data.edited_message and data.edited_message.strip():
            message.admin_edited_message = data.edited_message.strip()
        notification_service.notify_thank_you(db, message)
        result_message = "Message approved and notification sent"

    log_action(
        db, user_id=current_user.id, action=AuditAction.THANK_YOU_REVIEW,
        resource_type="thank_you_message", resource_id=message.id,
        details={"action": data.action, "edited": bool(message.admin_edited_message)},
        request=request,
    )
    db.commit()
    return ok({"id": message.id, "status": message.status.value}, message=result_message)


# ── Recommendations ─────────────────────────────────────────

@router.get("/recommendations")
def list_recommendations(
    status_filter: RecommendationStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    query = db.query(Recommendation)
    if status_filter:
        query = query.filter(Recommendation.status == status_filter)
    total = query.count()
    rows = query.order_by(desc(Recommendation.created_at), desc(Recommendation.id)).offset(offset).limit(limit).all()
    return ok({
        "items": [RecommendationResponse.model_validate(r) for r in rows],
        "total": total,
        "limit": limit,
        "offset": offset,
    })


def _get_recommendation(db: Session, recommendation_id: int) -> Recommendation:
    recommendation = db.query(Recommendation).filter(Recommendation.id == recommendation_id).first()
    if not recommendation:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    return recommendation


@router.patch("/recommendations/{recommendation_id}")
def update_recommendation(
    recommendation_id: int,
    data: RecommendationUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    recommendation = _get_recommendation(db, recommendation_id)
    if data.status is not None:
        recommendation.status = data.status
        recommendation.reviewed_by = current_user.id
        recommendation.reviewed_at = _now()
    if data.admin_notes is not None:
        recommendation.admin_notes = data.admin_notes
    log_action(
        db, user_id=current_user.id, action=AuditAction.RECOMMENDATION_UPDATE,
        resource_type="recommendation", resource_id=recommendation.id,
        details={"status": data.status.value if data.status else None}, request=request,
    )
    db.commit()
    db.refresh(recommendation)
    return ok(RecommendationResponse.model_validate(recommendation))


@router.delete("/recommendations/{recommendation_id}")
def delete_recommendation(
    recommendation_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    recommendation = _get_recommendation(db, recommendation_id)
    log_action(
        db, user_id=current_user.id, action=AuditAction.RECOMMENDATION_DELETE,
        resource_type="recommendation", resource_id=recommendation.id, request=request,
    )
    db.delete(recommendation)
    db.commit()
    return ok(message="Recommendation deleted")


# ── Pending image batches ───────────────────────────────────

def _get_batch(db: Session, batch_id: int) -> PendingImageBatch:
    batch = (
        db.query(PendingImageBatch)
        .options(joinedload(PendingImageBatch.uploader))
        .filter(PendingImageBatch.id == batch_id)
        .first()
    )
    if not batch:
        raise HTTPException(status_code=404, detail="Pending image batch not found")
    return batch


def _delete_batch_files(batch: PendingImageBatch) -> int:
    """Remove a batch's images from storage. Returns how many failed."""
    failed = 0
    for key in batch.file_paths or []:
        try:
            storage.delete_file(key)
        except storage.StorageError:
            failed += 1
    if failed:
        logger.warning(f"{failed} image(s) of batch {batch.id} could not be deleted")
    return failed


def _mark_processed(batch: PendingImageBatch, admin: User) -> None:
    batch.status = ImageBatchStatus.PROCESSED
    batch.processed_at = _now()
    batch.processed_by = admin.id


@router.get("/pending-images")
def list_pending_images(
    status_filter: ImageBatchStatus = Query(ImageBatchStatus.PENDING, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    batches = (
        db.query(PendingImageBatch)
        .options(joinedload(PendingImageBatch.uploader))
        .filter(PendingImageBatch.status == status_filter)
        .order_by(desc(PendingImageBatch.created_at), desc(PendingImageBatch.id))
        .all()
    )
    return ok([
        {
            "id": b.id,
            "uploader": _user_brief(b.uploader),
            "file_paths": b.file_paths or [],
            "image_count": len(b.file_paths or []),
            "status": b.status.value,
            "created_at": b.created_at,
            "processed_at": b.processed_at,
        }
        for b in batches
    ])


@router.get("/pending-images/{batch_id}")
def download_pending_images(
    batch_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Zip every image of a batch, numbered in upload order."""
    batch = _get_batch(db, batch_id)

    buffer = io.BytesIO()
    added = 0
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=6) as archive:
        for i, key in enumerate(batch.file_paths or [], start=1):
            try:
                data = storage.get_file(key)
            except storage.StorageError:
                logger.warning(f"Skipping missing image {key} in batch {batch.id}")
                continue
            ext = key.rsplit(".", 1)[-1] if "." in key else "jpg"
            archive.writestr(f"image-{i:03d}.{ext}", data)
            added += 1

    if added == 0:
        raise HTTPException(status_code=500, detail="No images could be downloaded")

    uploader_name = re.sub(r"[^a-zA-Z0-9]", "_", batch.uploader.name if batch.uploader else "") or "unknown"
    filename = f"images-{uploader_name}-{_now():%Y-%m-%d}-{batch.id}.zip"
    buffer.seek(0)
    return StreamingResponse(
        buffer,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/pending-images/{batch_id}")
def delete_pending_images(
    batch_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    batch = _get_batch(db, batch_id)
    _delete_batch_files(batch)
    log_action(
        db, user_id=current_user.id, action=AuditAction.IMAGE_BATCH_DELETE,
        resource_type="pending_image_batch", resource_id=batch.id, request=request,
    )
    db.delete(batch)
    db.commit()
    return ok(message="Pending images deleted")


@router.post("/pending-images/{batch_id}/process")
def process_pending_images(
    batch_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Mark a batch handled without publishing anything (e.g. unusable photos)."""
    batch = _get_batch(db, batch_id)
    _delete_batch_files(batch)
    _mark_processed(batch, current_user)
    log_action(
        db, user_id=current_user.id, action=AuditAction.IMAGE_BATCH_PROCESS,
        resource_type="pending_image_batch", resource_id=batch.id, request=request,
    )
    db.commit()
    return ok({"id": batch.id, "status": batch.status.value}, message="Batch marked as processed")


@router.post("/pending-images/{batch_id}/upload")
async def publish_pending_images(
    batch_id: int,
    request: Request,
    file: UploadFile = File(...),
    document_type: str | None = Form(None, alias="documentType"),
    subject: str | None = Form(None),
    medium: str = Form(Medium.SINHALA.value),
    title: str | None = Form(None),
    description: str | None = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Publish the PDF an admin compiled from a batch, credited to the original uploader."""
    batch = _get_batch(db, batch_id)
    if batch.status != ImageBatchStatus.PENDING:
        raise HTTPException(status_code=404, detail="Pending image batch not found or already processed")
    if not document_type or not subject or not title or not title.strip():
        raise HTTPException(status_code=400, detail="Missing required fields")
    try:
        doc_type = DocumentType(document_type)
        doc_medium = Medium(medium)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid document type or medium")
    if not is_valid_subject(subject):
        raise HTTPException(status_code=400, detail=f"Invalid subject: {subject}")

    data = await file.read()
    if not (file.filename or "").lower().endswith(".pdf") or not pdf_tools.is_valid_pdf(data):
        raise HTTPException(status_code=400, detail="Only PDF files are accepted")

    try:
        url = storage.upload_file(
            data, storage.generate_file_key("document.pdf", storage.DOCUMENTS_FOLDER), pdf_tools.PDF_MIME,
        )
    except storage.StorageError:
        raise HTTPException(status_code=500, detail="Failed to upload document")

    try:
        page_count = pdf_tools.get_page_count(data)
    except pdf_tools.PDFConversionError:
        page_count = None

    doc = Document(
        title=title.strip(),
        description=description.strip() if description and description.strip() else None,
        uploader_id=batch.uploader_id,
        file_path=url,
        file_size=len(data),
        page_count=page_count,
        type=doc_type,
        subject=subject,
        medium=doc_medium,
        status=DocumentStatus.APPROVED,
        uploaded_by_admin=True,
        admin_uploaded_by=current_user.id,
        original_image_batch_id=batch.id,
    )
    db.add(doc)
    db.flush()
    doc.thumbnail_url = thumbnails.generate_and_upload_thumbnail(doc.id, data)

    _delete_batch_files(batch)
    _mark_processed(batch, current_user)

    notification_service.create_notification(
        db,
        user_id=batch.uploader_id,
        type=NotificationType.UPLOAD_PROCESSED,
        title="Your images have been published!",
        message=(
            f'Your submitted images have been compiled and published as "{doc.title}". '
            "Thank you for your contribution!"
        ),
        link=f"/doc/{doc.id}",
    )
    log_action(
        db, user_id=current_user.id, action=AuditAction.IMAGE_BATCH_PUBLISH,
        resource_type="pending_image_batch", resource_id=batch.id,
        details={"document_id": doc.id}, request=request,
    )
    db.commit()
    db.refresh(doc)
    logger.info(f"Batch {batch.id} published as document {doc.id} by admin {current_user.id}")
    return ok(serialize_document(doc), message="Document published successfully")


# ── Settings ────────────────────────────────────────────────

@router.get("/settings/upload-status")
def get_upload_status(db: Session = Depends(get_db)):
    """Public: the upload form checks this before showing itself."""
    upload_status = settings_service.get_upload_status(db)
    return ok({"enabled": upload_status["enabled"], "reason": upload_status["reason"]})


@router.post("/settings/upload-status")
def set_upload_status(
    data: UploadStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    value = settings_service.set_upload_status(
        db, enabled=data.enabled, reason=data.reason, updated_by=current_user.id,
    )
    log_action(
        db, user_id=current_user.id, action=AuditAction.UPLOAD_STATUS_UPDATE,
        resource_type="system_setting", details={"enabled": data.enabled, "reason": value["reason"]},
        request=request,
    )
    db.commit()
    return ok(
        {"enabled": value["enabled"], "reason": value["reason"]},
        message="Uploads enabled" if data.enabled else "Uploads disabled",
    )


@router.get("/settings/storage-usage")
def get_storage_usage(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        usage = settings_service.compute_storage_usage()
    except storage.StorageError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Storage usage unavailable")
    auto_disabled = settings_service.enforce_storage_limit(db, usage)
    if auto_disabled:
        db.commit()
    return ok({**usage, "autoDisabled": auto_disabled})


# ── Thumbnails ──────────────────────────────────────────────

def _missing_thumbnails(db: Session):
    return db.query(Document).filter(
        Document.status == DocumentStatus.APPROVED,
        or_(Document.thumbnail_url.is_(None), Document.thumbnail_url == ""),
    )


@router.get("/backfill-thumbnails")
def thumbnail_coverage(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    total = db.query(Document).filter(Document.status == DocumentStatus.APPROVED).count()
    without = _missing_thumbnails(db).count()
    return ok({"withThumbnails": total - without, "withoutThumbnails": without, "total": total})


@router.post("/backfill-thumbnails")
def backfill_thumbnails(
    request: Request,
    data: BackfillRequest | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Generate missing thumbnails for approved PDFs, committing after each batch."""
    data = data or BackfillRequest()
    docs = _missing_thumbnails(db).order_by(Document.id.asc()).limit(data.limit).all()

    succeeded, failed = 0, 0
    errors: list[str] = []
    for start in range(0, len(docs), data.batch_size):
        for doc in docs[start:start + data.batch_size]:
            try:
                pdf_bytes = storage.get_file(storage.key_from_url(doc.file_path))
            except storage.StorageError:
                failed += 1
                errors.append(f"{doc.id}: could not fetch file")
                continue
            url = thumbnails.generate_and_upload_thumbnail(doc.id, pdf_bytes)
            if url:
                doc.thumbnail_url = url
                succeeded += 1
            else:
                failed += 1
                errors.append(f"{doc.id}: thumbnail generation failed")
        db.commit()

    log_action(
        db, user_id=current_user.id, action=AuditAction.THUMBNAIL_BACKFILL,
        resource_type="document", details={"processed": len(docs), "succeeded": succeeded},
        request=request,
    )
    db.commit()
    logger.info(f"Thumbnail backfill | processed={len(docs)} | ok={succeeded} | failed={failed}")
    return ok({"processed": len(docs), "succeeded": succeeded, "failed": failed, "errors": errors})


# ── Audit ───────────────────────────────────────────────────

@router.get("/audit-logs")
def list_audit_logs(
    user_id: int | None = None,
    action: str | None = None,
    resource_type: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    search: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """List audit logs with filters. Admin only."""
    query = db.query(AuditLog)

    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    if resource_type:
        query = query.filter(AuditLog.resource_type == resource_type)
    if date_from:
        query = query.filter(AuditLog.created_at >= date_from)
    if date_to:
        query = query.filter(AuditLog.created_at <= date_to)
    if search:
        query = query.filter(AuditLog.details.ilike(like_pattern(search), escape="\\"))

    total = query.count()
    logs = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).offset(skip).limit(limit).all()

    # Resolve user names in bulk
    user_ids = {log.user_id for log in logs if log.user_id}
    user_map = {}
    if user_ids:
        users = db.query(User.id, User.name).filter(User.id.in_(user_ids)).all()
        user_map = {u.id: u.name for u in users}

    items = [
        AuditLogResponse(
            id=log.id,
            user_id=log.user_id,
            user_name=user_map.get(log.user_id) if log.user_id else None,
            action=log.action,
            resource_type=log.resource_type,
            resource_id=log.resource_id,
            details=log.details,
            ip_address=log.ip_address,
            created_at=log.created_at,
        )
        for log in logs
    ]
    return ok(AuditLogList(items=items, total=total))
