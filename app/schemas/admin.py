from pydantic import BaseModel, Field, field_validator

from app.models.comment import HappinessLevel
from app.models.document import DocumentType, Medium


class AdminStats(BaseModel):
    totalDocuments: int
    totalUsers: int
    totalDownloads: int
    pendingReview: int
    downvotedDocuments: int


class RejectRequest(BaseModel):
    reason: str | None = None


class CategorizeDocumentRequest(BaseModel):
    document_type: DocumentType = Field(..., alias="documentType")
    subject: str
    medium: Medium
    title: str | None = Field(None, max_length=255)

    class Config:
        populate_by_name = True


class ComplementCreate(BaseModel):
    document_id: int = Field(..., alias="documentId")
    user_id: int = Field(..., alias="userId")
    sender_display_name: str = Field(..., min_length=1, max_length=50, alias="senderDisplayName")
    happiness_level: HappinessLevel = Field(..., alias="happinessLevel")
    message: str = Field(..., min_length=1, max_length=500)

    @field_validator("sender_display_name", "message")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Cannot be blank")
        return v

    class Config:
        populate_by_name = True


class UploadStatusUpdate(BaseModel):
    enabled: bool
    reason: str | None = None


class BackfillRequest(BaseModel):
    batch_size: int = Field(10, ge=1, le=50, alias="batchSize")
    limit: int = Field(100, ge=1, le=1000)

    class Config:
        populate_by_name = True
