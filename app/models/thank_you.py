import enum

from sqlalchemy import Column, Integer, Float, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base, value_enum


class ThankYouStatus(str, enum.Enum):
    APPROVED = "approved"
    PENDING_REVIEW = "pending_review"
    REJECTED = "rejected"


class SentimentCategory(str, enum.Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    INAPPROPRIATE = "inappropriate"


class ThankYouMessage(Base):
    __tablename__ = "thank_you_messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True)
    message = Column(Text, nullable=False)

    # AI moderation result
    sentiment_category = Column(value_enum(SentimentCategory), nullable=True)
    ai_confidence = Column(Float, nullable=True)
    ai_reasoning = Column(Text, nullable=True)

    status = Column(value_enum(ThankYouStatus), nullable=False, default=ThankYouStatus.PENDING_REVIEW)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    admin_edited_message = Column(Text, nullable=True)
    notification_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])
    document = relationship("Document")

    __table_args__ = (
        Index("ix_thank_you_status_created", "status", "created_at"),
    )

    @property
    def display_message(self) -> str:
        return self.admin_edited_message or self.message
