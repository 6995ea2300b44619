from datetime import datetime

from pydantic import BaseModel, Field

from app.models.comment import HappinessLevel


class CommentCreate(BaseModel):
    document_id: int = Field(..., alias="documentId")
    happiness_level: HappinessLevel = Field(..., alias="happinessLevel")
    message: str | None = Field(None, max_length=500)

    class Config:
        populate_by_name = True


class CommentResponse(BaseModel):
    id: int
    document_id: int
    sender_id: int | None = None
    recipient_id: int | None = None
    admin_name: str | None = None
    is_admin_complement: bool = False
    happiness_level: HappinessLevel
    message: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
