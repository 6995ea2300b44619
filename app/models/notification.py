import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base, value_enum


class NotificationType(str, enum.Enum):
    COMMENT_RECEIVED = "comment_received"
    DOWNLOAD_MILESTONE = "download_milestone"
    UPLOAD_PROCESSED = "upload_processed"
    DOCUMENT_REJECTED = "document_rejected"
    SYSTEM_MESSAGE = "system_message"
    COMPLEMENT = "complement"
    THANK_YOU = "thank_you"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(value_enum(NotificationType), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    link = Column(String(500), nullable=True)
    is_read = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")

    __table_args__ = (
        Index("ix_notifications_user_read_created", "user_id", "is_read", "created_at"),
    )
