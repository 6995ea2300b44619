from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from svix.webhooks import Webhook, WebhookVerificationError

from app.core.config import settings
from app.core.logging_config import get_logger
from app.core.rate_limit import limiter
from app.db.database import get_db
from app.models.document import Document
from app.models.user import User
from app.schemas.common import ok

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def _primary_email(data: dict) -> str | None:
    addresses = data.get("email_addresses") or []
    if not addresses:
        return None
    return addresses[0].get("email_address")


def _full_name(data: dict) -> str:
    name = f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
    return name or "Anonymous"


def handle_user_upsert(db: Session, data: dict) -> User:
    clerk_id = data["id"]
    user = db.query(User).filter(User.clerk_id == clerk_id).first()
    if user is None:
        user = User(clerk_id=clerk_id)
        db.add(user)
    user.email = _primary_email(data)
    user.name = _full_name(data)
    user.avatar_url = data.get("image_url")
    return user


def handle_user_deleted(db: Session, data: dict) -> None:
    user = db.query(User).filter(User.clerk_id == data.get("id")).first()
    if user is None:
        return
    # Keep their documents, just orphan them
    db.query(Document).filter(Document.uploader_id == user.id).update({"uploader_id": None})
    db.delete(user)


@router.post("/clerk")
@limiter.limit("60/minute")
async def clerk_webhook(request: Request, db: Session = Depends(get_db)):
    """Keep the users table in step with Clerk (created, updated, deleted)."""
    msg_id = request.headers.get("svix-id")
    timestamp = request.headers.get("svix-timestamp")
    signature = request.headers.get("svix-signature")
    if not msg_id or not timestamp or not signature:
        raise HTTPException(status_code=400, detail="Missing svix headers")
    if not settings.clerk_webhook_secret:
        logger.error("CLERK_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Webhook secret not configured")

    body = await request.body()
    webhook = Webhook(settings.clerk_webhook_secret)
    headers = {"svix-id": msg_id, "svix-timestamp": timestamp, "svix-signature": signature}
    try:
        event = webhook.verify(body, headers)
    except WebhookVerificationError as e:
        logger.warning(f"Rejected Clerk webhook {msg_id} | reason={e}")
        raise HTTPException(status_code=400, detail="Invalid signature")
    except ValueError:
        logger.warning(f"Clerk webhook {msg_id} carried a non-JSON payload")
        raise HTTPException(status_code=400, detail="Invalid payload")

    event_type = event.get("type")
    data = event.get("data") or {}

    if event_type in ("user.created", "user.updated"):
        user = handle_user_upsert(db, data)
        db.commit()
        logger.info(f"Clerk {event_type} | clerk_id={user.clerk_id} | user={user.id}")
    elif event_type == "user.deleted":
        handle_user_deleted(db, data)
        db.commit()
        logger.info(f"Clerk user.deleted | clerk_id={data.get('id')}")
    else:
        logger.debug(f"Ignoring Clerk webhook event {event_type}")

    return ok({"received": True})
