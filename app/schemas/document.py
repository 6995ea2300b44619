from pydantic import BaseModel, Field


class CategorizeRequest(BaseModel):
    file_name: str = Field(..., min_length=1, alias="fileName")
    file_content: str | None = Field(None, alias="fileContent")  # base64
    mime_type: str | None = Field(None, alias="mimeType")

    class Config:
        populate_by_name = True
