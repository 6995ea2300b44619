from datetime import datetime

from pydantic import BaseModel, Field

from app.models.user import UserRole


class UserResponse(BaseModel):
    id: int
    clerk_id: str
    email: str | None = None
    name: str
    avatar_url: str | None = None
    anon_name: str
    anon_avatar_seed: str
    role: UserRole
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class UserSyncRequest(BaseModel):
    email: str | None = None
    first_name: str | None = Field(None, alias="firstName")
    last_name: str | None = Field(None, alias="lastName")
    image_url: str | None = Field(None, alias="imageUrl")

    class Config:
        populate_by_name = True


class PublicProfile(BaseModel):
    id: int
    anon_name: str
    anon_avatar: str | None = None
    created_at: datetime | None = None
