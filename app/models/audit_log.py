import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from app.db.database import Base


class AuditAction(str, enum.Enum):
    DOCUMENT_APPROVE = "document_approve"
    DOCUMENT_REJECT = "document_reject"
    DOCUMENT_CATEGORIZE = "document_categorize"
    DOCUMENT_DELETE = "document_delete"
    COMPLEMENT_SEND = "complement_send"
    THANK_YOU_REVIEW = "thank_you_review"
    RECOMMENDATION_UPDATE = "recommendation_update"
    RECOMMENDATION_DELETE = "recommendation_delete"
    IMAGE_BATCH_PUBLISH = "image_batch_publish"
    IMAGE_BATCH_PROCESS = "image_batch_process"
    IMAGE_BATCH_DELETE = "image_batch_delete"
    UPLOAD_STATUS_UPDATE = "upload_status_update"
    THUMBNAIL_BACKFILL = "thumbnail_backfill"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)  # null for system jobs
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(Integer, nullable=True)
    details = Column(Text, nullable=True)  # JSON string with extra context
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_audit_user_created", "user_id", "created_at"),
        Index("ix_audit_resource", "resource_type", "resource_id"),
        Index("ix_audit_action_created", "action", "created_at"),
    )
