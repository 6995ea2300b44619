
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.logging_config import get_logger
from app.db.database import get_db
from app.models.document import Document
from app.models.thank_you import ThankYouMessage, ThankYouStatus
from app.models.user import User
from app.schemas.common import ok
from app.schemas.thank_you import ThankYouCreate
from app.services import moderation, notification_service

logger = get_logger(__name__)

router = APIRouter(prefix="/thank-you", tags=["Thank You"])


@router.post("")
def send_thank_you(
    data: ThankYouCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if data.recipient_id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot send thank you message to yourself")
    recipient = db.query(User).filter(User.id == data.recipient_id).first()
    if not recipient:
        raise HTTPException(status_code=404, detail="Recipient not found")
    if data.document_id is not None and not db.query(Document).filter(Document.id == data.document_id).first():
        raise HTTPException(status_code=404, detail="Document not found")

    result = moderation.moderate_thank_you_message(data.message)
    message = ThankYouMessage(
        sender_id=current_user.id,
        recipient_id=recipient.id,
        document_id=data.document_id,
        message=data.message,
        sentiment_category=result.category,
        ai_confidence=result.confidence,
        ai_reasoning=result.reasoning,
        status=ThankYouStatus.APPROVED if result.should_auto_approve else ThankYouStatus.PENDING_REVIEW,
    )
    db.add(message)
    db.flush()

    if message.status == ThankYouStatus.APPROVED:
        message.sender = current_user
        notification_service.notify_thank_you(db, message)

    db.commit()
    logger.info(
        f"Thank-you {message.id} from user {current_user.id} to {recipient.id} | "
        f"status={message.status.value} | sentiment={result.category.value}"
    )
    requires_review = message.status == ThankYouStatus.PENDING_REVIEW
    return ok(
        {"id": message.id, "status": message.status.value, "requiresReview": requires_review},
        message="Your message is being reviewed" if requires_review else "Thank you message sent!",
    )
