from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ThankYouCreate(BaseModel):
    recipient_id: int = Field(..., alias="recipientId")
    document_id: int | None = Field(None, alias="documentId")
    message: str

    class Config:
        populate_by_name = True

    @field_validator("message")
    @classmethod
    def check_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        if len(v) > 500:
            raise ValueError("Message must be 500 characters or fewer")
        return v


class ThankYouReview(BaseModel):
    action: Literal["approve", "reject"]
    edited_message: str | None = Field(None, max_length=500, alias="editedMessage")

    class Config:
        populate_by_name = True
