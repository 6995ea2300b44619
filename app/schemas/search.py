from pydantic import BaseModel, Field


class FailedSearchCreate(BaseModel):
    query: str = Field(..., min_length=1, max_length=255)
    subject: str | None = None
    medium: str | None = None
    document_type: str | None = Field(None, alias="documentType")

    class Config:
        populate_by_name = True
