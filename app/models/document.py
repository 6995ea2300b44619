import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base, value_enum


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentType(str, enum.Enum):
    BOOK = "book"
    SHORT_NOTE = "short_note"
    PAPER = "paper"
    JUMBLED = "jumbled"


class Medium(str, enum.Enum):
    SINHALA = "sinhala"
    ENGLISH = "english"
    TAMIL = "tamil"


class VoteType(str, enum.Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    uploader_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    file_path = Column(String(1000), nullable=False)  # public R2 URL
    file_size = Column(Integer, default=0)
    page_count = Column(Integer, nullable=True)
    thumbnail_url = Column(String(1000), nullable=True)

    type = Column(value_enum(DocumentType), nullable=False)
    subject = Column(String(64), nullable=False, index=True)
    medium = Column(value_enum(Medium), nullable=False)
    status = Column(value_enum(DocumentStatus), nullable=False, default=DocumentStatus.PENDING)
    rejection_reason = Column(Text, nullable=True)

    upvotes = Column(Integer, nullable=False, default=0)
    downvotes = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)
    downloads = Column(Integer, nullable=False, default=0)

    is_featured = Column(Boolean, default=False)
    is_trending = Column(Boolean, default=False)
    needs_admin_review = Column(Boolean, default=False)

    # Set when an admin publishes a PDF built from a user's image batch
    uploaded_by_admin = Column(Boolean, default=False)
    admin_uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    original_image_batch_id = Column(
        Integer, ForeignKey("pending_image_batches.id", ondelete="SET NULL"), nullable=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    uploader = relationship("User", foreign_keys=[uploader_id])

    __table_args__ = (
        Index("ix_documents_status_created", "status", "created_at"),
        Index("ix_documents_status_subject", "status", "subject"),
    )


class DocumentVote(Base):
    __tablename__ = "document_votes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    vote_type = Column(value_enum(VoteType), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "document_id", name="uq_document_votes_user_document"),
    )


class UserDownload(Base):
    __tablename__ = "user_downloads"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    has_commented = Column(Boolean, default=False)
    downloaded_at = Column(DateTime(timezone=True), server_default=func.now())

    document = relationship("Document")

    __table_args__ = (
        UniqueConstraint("user_id", "document_id", name="uq_user_downloads_user_document"),
    )


class UserSaved(Base):
    __tablename__ = "user_saved"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    document = relationship("Document")

    __table_args__ = (
        UniqueConstraint("user_id", "document_id", name="uq_user_saved_user_document"),
    )
