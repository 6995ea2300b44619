import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base, value_enum


class HappinessLevel(str, enum.Enum):
    HELPFUL = "helpful"
    VERY_HELPFUL = "very_helpful"
    LIFE_SAVER = "life_saver"

    @property
    def emoji(self) -> str:
        return HAPPINESS_EMOJI[self]

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


HAPPINESS_EMOJI = {
    HappinessLevel.HELPFUL: "😊",
    HappinessLevel.VERY_HELPFUL: "😃",
    HappinessLevel.LIFE_SAVER: "🤩",
}


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)  # null for admin complements
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    admin_name = Column(String(50), nullable=True)
    is_admin_complement = Column(Boolean, default=False)
    happiness_level = Column(value_enum(HappinessLevel), nullable=False)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    document = relationship("Document")
    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])

    __table_args__ = (
        Index("ix_comments_sender_created", "sender_id", "created_at"),
    )
