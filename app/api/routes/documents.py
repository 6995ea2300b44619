import time

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, Response, UploadFile
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_optional_user
from app.core.logging_config import get_logger
from app.db.database import get_db
from app.domains.documents.services import DocumentService, serialize_document
from app.domains.documents.subjects import is_valid_subject
from app.models.audit_log import AuditAction
from app.models.document import Document, DocumentStatus, DocumentType, Medium, VoteType
from app.models.notification import NotificationType
from app.models.pending_image import PendingImageBatch
from app.models.user import User
from app.schemas.common import ok
from app.schemas.document import CategorizeRequest
from app.services import categorization, notification_service, pdf_tools, settings_service, storage, thumbnails
from app.services.audit_service import log_action

logger = get_logger(__name__)

router = APIRouter(prefix="/documents", tags=["Documents"])

ALLOWED_EXTENSIONS = {"pdf", "jpg", "jpeg", "png", "doc", "docx"}
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png"}


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def _ensure_uploads_enabled(db: Session) -> None:
    upload_status = settings_service.get_upload_status(db)
    if not upload_status["enabled"]:
        raise HTTPException(
            status_code=403,
            detail=upload_status["reason"] or settings_service.DEFAULT_DISABLED_REASON,
        )


# ── Browse ──────────────────────────────────────────────────

@router.get("")
def list_documents(
    query: str | None = None,
    subject: str | None = None,
    medium: Medium | None = None,
    document_type: DocumentType | None = Query(None, alias="documentType"),
    sort_by: str = Query("popular", alias="sortBy", pattern="^(popular|downloads|upvotes|newest)$"),
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Approved documents, filtered and sorted, or ranked by relevance when a query is given."""
    data = DocumentService(db).list_documents(
        query=query,
        subject=subject,
        medium=medium,
        document_type=document_type,
        sort_by=sort_by,
        limit=limit,
        offset=offset,
    )
    return ok(data)


@router.get("/counts")
def document_counts(
    query: str | None = None,
    subject: str | None = None,
    medium: str | None = None,
    db: Session = Depends(get_db),
):
    return ok(DocumentService(db).count_documents(query=query, subject=subject, medium=medium))


# ── Upload pipeline ─────────────────────────────────────────

@router.post("/upload")
async def upload_documents(
    files: list[UploadFile] = File(...),
    document_type: str | None = Form(None, alias="documentType"),
    subject: str | None = Form(None),
    medium: str | None = Form(None),
    title: str | None = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Convert each file to PDF, store it and publish it immediately.

    Per-file failures are collected; the request only fails when nothing
    could be uploaded.
    """
    _ensure_uploads_enabled(db)

    if not document_type or not subject or not medium:
        raise HTTPException(
            status_code=400, detail="Missing required fields: documentType, subject, medium"
        )
    try:
        doc_type = DocumentType(document_type)
        doc_medium = Medium(medium)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid document type or medium")
    if not is_valid_subject(subject):
        raise HTTPException(status_code=400, detail=f"Invalid subject: {subject}")

    uploaded: list[dict] = []
    errors: list[str] = []

    for upload in files:
        filename = upload.filename or "document"
        ext = _extension(filename)
        if ext not in ALLOWED_EXTENSIONS:
            errors.append(f"{filename}: Invalid file type")
            continue
        if ext in IMAGE_EXTENSIONS:
            errors.append(f"{filename}: Images should be submitted for admin review")
            continue

        try:
            data = await upload.read()
            mime_type = pdf_tools.mime_type_for(filename)
            try:
                converted = pdf_tools.convert_to_pdf(data, mime_type, filename)
                body, content_type, page_count = converted.pdf_bytes, pdf_tools.PDF_MIME, converted.page_count
                key = storage.generate_file_key("document.pdf", storage.DOCUMENTS_FOLDER)
            except pdf_tools.PDFConversionError as e:
                logger.warning(f"Conversion failed for {filename}, storing original | error={e}")
                body, content_type, page_count = data, mime_type, None
                key = storage.generate_file_key(filename, storage.DOCUMENTS_FOLDER)

            url = storage.upload_file(body, key, content_type)

            doc = Document(
                title=(title.strip() if title and title.strip() and len(files) == 1
                       else categorization.suggested_title_from_filename(filename)),
                uploader_id=current_user.id,
                file_path=url,
                file_size=len(body),
                page_count=page_count,
                type=doc_type,
                subject=subject,
                medium=doc_medium,
                status=DocumentStatus.APPROVED,
            )
            db.add(doc)
            db.flush()

            if content_type == pdf_tools.PDF_MIME:
                doc.thumbnail_url = thumbnails.generate_and_upload_thumbnail(doc.id, body)

            notification_service.create_notification(
                db,
                user_id=current_user.id,
                type=NotificationType.UPLOAD_PROCESSED,
                title="Upload Successful!",
                message=f'Your document "{doc.title}" is now live and helping students!',
                link=f"/doc/{doc.id}",
            )
            db.commit()
            db.refresh(doc)
            uploaded.append(serialize_document(doc))
            logger.info(f"Document {doc.id} uploaded by user {current_user.id} | file={filename}")
        except storage.StorageError:
            db.rollback()
            errors.append(f"{filename}: Storage upload failed")
        except Exception:
            db.rollback()
            logger.error(f"Processing failed for {filename}", exc_info=True)
            errors.append(f"{filename}: Processing failed")

    if not uploaded and errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))

    return ok({"uploaded": uploaded, "errors": errors})


@router.post("/categorize")
def categorize(
    body: CategorizeRequest,
    current_user: User = Depends(get_current_user),
):
    """Suggest subject, medium, type and title for the upload form."""
    result = categorization.categorize_document(body.file_name, body.file_content, body.mime_type)
    return ok(result)


@router.post("/convert-word")
async def convert_word(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    filename = file.filename or "document.docx"
    mime_type = pdf_tools.mime_type_for(filename)
    if not pdf_tools.is_word_document(mime_type):
        raise HTTPException(status_code=400, detail="File must be a Word document (.doc or .docx)")
    data = await file.read()
    try:
        pdf_bytes = pdf_tools.word_to_pdf(data)
    except pdf_tools.PDFConversionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    pdf_name = filename.rsplit(".", 1)[0] + ".pdf"
    return Response(
        content=pdf_bytes,
        media_type=pdf_tools.PDF_MIME,
        headers={"Content-Disposition": f'attachment; filename="{pdf_name}"'},
    )


@router.post("/submit-images")
async def submit_images(
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Queue photos of notes for an admin to turn into a single PDF."""
    _ensure_uploads_enabled(db)

    if any(_extension(f.filename or "") not in IMAGE_EXTENSIONS for f in files):
        raise HTTPException(status_code=400, detail="All files must be images for this endpoint")

    timestamp = int(time.time() * 1000)
    keys: list[str] = []
    for i, upload in enumerate(files):
        ext = _extension(upload.filename or "") or "jpg"
        key = f"{storage.PENDING_IMAGES_FOLDER}/{current_user.id}/{timestamp}-{i}.{ext}"
        try:
            storage.upload_file(await upload.read(), key, pdf_tools.mime_type_for(f"x.{ext}"))
            keys.append(key)
        except storage.StorageError:
            logger.warning(f"Skipping image {upload.filename} for user {current_user.id}")

    if not keys:
        raise HTTPException(status_code=500, detail="Failed to upload images")

    batch = PendingImageBatch(uploader_id=current_user.id, file_paths=keys)
    db.add(batch)
    db.commit()
    logger.info(f"Image batch {batch.id} submitted by user {current_user.id} | images={len(keys)}")

    return ok({
        "message": f"{len(keys)} image(s) submitted for admin review",
        "fileCount": len(keys),
        "status": "pending",
    })


# ── Single document ─────────────────────────────────────────

@router.get("/{document_id}")
def get_document(document_id: int, db: Session = Depends(get_db)):
    return ok(serialize_document(DocumentService(db).get_or_404(document_id)))


@router.delete("/{document_id}")
def delete_document(
    document_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = DocumentService(db)
    doc = service.get_or_404(document_id)
    if current_user.is_admin and doc.uploader_id != current_user.id:
        log_action(
            db, user_id=current_user.id, action=AuditAction.DOCUMENT_DELETE,
            resource_type="document", resource_id=doc.id, details={"title": doc.title}, request=request,
        )
    service.delete_document(current_user, doc)
    return ok(message="Document deleted")


@router.post("/{document_id}/view")
def record_view(document_id: int, db: Session = Depends(get_db)):
    service = DocumentService(db)
    views = service.record_view(service.get_or_404(document_id))
    return ok({"views": views})


@router.post("/{document_id}/download")
def record_download(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = DocumentService(db)
    return ok(service.record_download(current_user, service.get_or_404(document_id)))


@router.get("/{document_id}/upvote")
def get_vote(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    return ok({"user_vote": DocumentService(db).get_user_vote(current_user, document_id)})


@router.post("/{document_id}/upvote")
def upvote(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = DocumentService(db)
    return ok(service.apply_vote(current_user, service.get_or_404(document_id), VoteType.UPVOTE))


@router.post("/{document_id}/downvote")
def downvote(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = DocumentService(db)
    return ok(service.apply_vote(current_user, service.get_or_404(document_id), VoteType.DOWNVOTE))


@router.get("/{document_id}/save")
def get_saved(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ok({"saved": DocumentService(db).is_saved(current_user, document_id)})


@router.post("/{document_id}/save")
def toggle_save(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = DocumentService(db)
    return ok({"saved": service.toggle_save(current_user, service.get_or_404(document_id))})
