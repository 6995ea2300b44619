from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import desc, func
from sqlalchemy.orm import Session, joinedload

from app.api.deps import get_clerk_id, get_current_user, get_token_claims
from app.core.logging_config import get_logger
from app.db.database import get_db
from app.domains.documents.services import serialize_document
from app.models.document import Document, DocumentStatus, DocumentVote, UserDownload, UserSaved, VoteType
from app.models.user import User
from app.schemas.common import ok
from app.schemas.user import PublicProfile, UserResponse, UserSyncRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def display_name(first_name: str | None, last_name: str | None) -> str:
    return f"{first_name or ''} {last_name or ''}".strip() or "Anonymous"


@router.get("")
def get_me(current_user: User = Depends(get_current_user)):
    return ok(UserResponse.model_validate(current_user))


@router.post("/sync")
def sync_user(
    data: UserSyncRequest | None = None,
    clerk_id: str = Depends(get_clerk_id),
    claims: dict | None = Depends(get_token_claims),
    db: Session = Depends(get_db),
):
    """Create the local user row for a signed-in Clerk user if the webhook hasn't yet."""
    existing = db.query(User).filter(User.clerk_id == clerk_id).first()
    if existing:
        return {"success": True, "data": UserResponse.model_validate(existing), "synced": False}

    data = data or UserSyncRequest()
    claims = claims or {}
    user = User(
        clerk_id=clerk_id,
        email=data.email or claims.get("email"),
        name=display_name(
            data.first_name or claims.get("first_name"),
            data.last_name or claims.get("last_name"),
        ),
        avatar_url=data.image_url or claims.get("image_url"),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} synced from session | clerk_id={clerk_id}")
    return {"success": True, "data": UserResponse.model_validate(user), "synced": True}


@router.get("/uploads")
def my_uploads(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All of the caller's documents, including pending and rejected ones."""
    docs = (
        db.query(Document)
        .options(joinedload(Document.uploader))
        .filter(Document.uploader_id == current_user.id)
        .order_by(desc(Document.created_at), desc(Document.id))
        .all()
    )
    return ok([serialize_document(d) for d in docs])


@router.get("/downloads")
def my_downloads(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    downloads = (
        db.query(UserDownload)
        .options(joinedload(UserDownload.document).joinedload(Document.uploader))
        .filter(UserDownload.user_id == current_user.id)
        .order_by(desc(UserDownload.downloaded_at), desc(UserDownload.id))
        .all()
    )
    return ok([
        {
            **serialize_document(d.document),
            "downloaded_at": d.downloaded_at,
            "has_commented": bool(d.has_commented),
        }
        for d in downloads
        if d.document is not None
    ])


@router.get("/liked")
def my_liked(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    docs = (
        db.query(Document)
        .options(joinedload(Document.uploader))
        .join(DocumentVote, DocumentVote.document_id == Document.id)
        .filter(DocumentVote.user_id == current_user.id, DocumentVote.vote_type == VoteType.UPVOTE)
        .order_by(desc(DocumentVote.created_at), desc(DocumentVote.id))
        .all()
    )
    return ok([serialize_document(d) for d in docs])


@router.get("/saved")
def my_saved(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    docs = (
        db.query(Document)
        .options(joinedload(Document.uploader))
        .join(UserSaved, UserSaved.document_id == Document.id)
        .filter(UserSaved.user_id == current_user.id)
        .order_by(desc(UserSaved.created_at), desc(UserSaved.id))
        .all()
    )
    return ok([serialize_document(d) for d in docs])


@router.get("/{user_id}")
def public_profile(user_id: int, db: Session = Depends(get_db)):
    """Anonymous public profile: identity, approved uploads and totals."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    docs = (
        db.query(Document)
        .options(joinedload(Document.uploader))
        .filter(Document.uploader_id == user.id, Document.status == DocumentStatus.APPROVED)
        .order_by(desc(Document.created_at), desc(Document.id))
        .all()
    )
    total_downloads = (
        db.query(func.coalesce(func.sum(Document.downloads), 0))
        .filter(Document.uploader_id == user.id, Document.status == DocumentStatus.APPROVED)
        .scalar()
    )
    profile = PublicProfile(
        id=user.id,
        anon_name=user.anon_name,
        anon_avatar=user.anon_avatar_url,
        created_at=user.created_at,
    )
    return ok({
        "user": profile,
        "documents": [serialize_document(d) for d in docs],
        "stats": {"totalUploads": len(docs), "totalDownloads": int(total_downloads or 0)},
    })
