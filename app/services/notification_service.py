import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS_PER_USER = 5
RATE_LIMIT_WINDOW = timedelta(hours=24)

# Admin-originated notifications are delivered regardless of the daily cap
ALWAYS_SEND = {NotificationType.COMPLEMENT, NotificationType.DOCUMENT_REJECTED}


def recent_notification_count(db: Session, user_id: int) -> int:
    since = datetime.now(timezone.utc) - RATE_LIMIT_WINDOW
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.created_at >= since)
        .count()
    )


def should_send_notification(db: Session, user_id: int, notification_type: NotificationType) -> bool:
    if notification_type in ALWAYS_SEND:
        return True
    return recent_notification_count(db, user_id) < MAX_NOTIFICATIONS_PER_USER


def create_notification(
    db: Session,
    *,
    user_id: int,
    type: NotificationType,
    title: str,
    message: str | None = None,
    link: str | None = None,
    force: bool = False,
) -> Notification | None:
    """Queue a notification on the session (caller commits).

    Returns None when the user already hit the daily cap, unless ``force``.
    """
    if not force and not should_send_notification(db, user_id, type):
        logger.info(f"Notification suppressed by daily cap | user={user_id} | type={type.value}")
        return None

    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        link=link,
    )
    db.add(notification)
    return notification


def notify_thank_you(db: Session, message) -> Notification | None:
    """Deliver an approved thank-you message to its recipient. Caller commits."""
    sender_name = message.sender.anon_name if message.sender else "Someone"
    notification = create_notification(
        db,
        user_id=message.recipient_id,
        type=NotificationType.THANK_YOU,
        title=f"{sender_name} thanked you!",
        message=message.display_message,
        link=f"/doc/{message.document_id}" if message.document_id else None,
        force=True,
    )
    message.notification_sent_at = datetime.now(timezone.utc)
    return notification
