from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.logging_config import get_logger
from app.db.database import get_db
from app.domains.documents.services import DocumentService
from app.models.comment import Comment
from app.models.document import UserDownload
from app.models.notification import NotificationType
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentResponse
from app.schemas.common import ok
from app.services import notification_service

logger = get_logger(__name__)

router = APIRouter(prefix="/comments", tags=["Comments"])

PREVIEW_LENGTH = 100


def _notification_message(comment: Comment, document_title: str) -> str:
    if comment.message:
        text = comment.message
        preview = text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text
        return f'"{preview}" on your "{document_title}"'
    return f'Someone found your "{document_title}" {comment.happiness_level.label}!'


@router.post("")
def create_comment(
    data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Leave a happiness reaction on a downloaded document and tell its uploader."""
    doc = DocumentService(db).get_or_404(data.document_id)

    comment = Comment(
        document_id=doc.id,
        sender_id=current_user.id,
        recipient_id=doc.uploader_id,
        happiness_level=data.happiness_level,
        message=data.message.strip() if data.message and data.message.strip() else None,
    )
    db.add(comment)

    db.query(UserDownload).filter(
        UserDownload.user_id == current_user.id,
        UserDownload.document_id == doc.id,
    ).update({"has_commented": True})

    if doc.uploader_id and doc.uploader_id != current_user.id:
        notification_service.create_notification(
            db,
            user_id=doc.uploader_id,
            type=NotificationType.COMMENT_RECEIVED,
            title=f"{data.happiness_level.emoji} New Comment!",
            message=_notification_message(comment, doc.title),
            link=f"/doc/{doc.id}",
        )

    db.commit()
    db.refresh(comment)
    logger.info(f"Comment {comment.id} on document {doc.id} by user {current_user.id}")
    return ok(
        CommentResponse.model_validate(comment),
        message="Comment sent! Thank you for making the contributor's day better.",
    )
