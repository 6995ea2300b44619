import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.models.recommendation import RecommendationStatus

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class RecommendationCreate(BaseModel):
    name: str = Field(..., max_length=100)
    email: str
    message: str

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("message")
    @classmethod
    def check_message(cls, v: str) -> str:
        v = v.strip()
        if not 10 <= len(v) <= 2000:
            raise ValueError("Message must be between 10 and 2000 characters")
        return v


class RecommendationUpdate(BaseModel):
    status: RecommendationStatus | None = None
    admin_notes: str | None = Field(None, alias="adminNotes")

    class Config:
        populate_by_name = True


class RecommendationResponse(BaseModel):
    id: int
    name: str
    email: str
    message: str
    status: RecommendationStatus
    admin_notes: str | None = None
    reviewed_by: int | None = None
    reviewed_at: datetime | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
