import enum

from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base, value_enum


class ImageBatchStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSED = "processed"


class PendingImageBatch(Base):
    """Photos of handwritten notes waiting for an admin to turn them into a PDF."""

    __tablename__ = "pending_image_batches"

    id = Column(Integer, primary_key=True, index=True)
    uploader_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    file_paths = Column(JSON, nullable=False, default=list)  # R2 keys, in upload order
    status = Column(value_enum(ImageBatchStatus), nullable=False, default=ImageBatchStatus.PENDING)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    uploader = relationship("User", foreign_keys=[uploader_id])
