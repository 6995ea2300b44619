from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func

from app.db.database import Base


class FailedSearch(Base):
    """A query that returned nothing. Shown to downloaders as an upload suggestion."""

    __tablename__ = "failed_searches"

    id = Column(Integer, primary_key=True, index=True)
    query = Column(String(255), nullable=False)
    normalized_query = Column(String(255), unique=True, index=True, nullable=False)
    subject = Column(String(64), nullable=True)
    medium = Column(String(20), nullable=True)
    document_type = Column(String(20), nullable=True)
    search_count = Column(Integer, nullable=False, default=1)
    is_resolved = Column(Boolean, default=False)
    resolved_document_id = Column(Integer, ForeignKey("documents.id", ondelete="SET NULL"), nullable=True)
    last_searched_at = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
