import enum
import random
import secrets

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from app.db.database import Base, value_enum


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


_ANON_ADJECTIVES = [
    "Curious", "Bright", "Quiet", "Clever", "Brave", "Gentle", "Swift", "Calm",
    "Lucky", "Sunny", "Kind", "Witty", "Eager", "Humble", "Jolly", "Noble",
]
_ANON_ANIMALS = [
    "Elephant", "Leopard", "Peacock", "Kingfisher", "Turtle", "Owl", "Dolphin",
    "Squirrel", "Hornbill", "Mongoose", "Parrot", "Deer", "Otter", "Falcon",
]


def generate_anon_name() -> str:
    return f"{random.choice(_ANON_ADJECTIVES)} {random.choice(_ANON_ANIMALS)}"


def generate_avatar_seed() -> str:
    return secrets.token_hex(8)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    clerk_id = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), index=True, nullable=True)
    name = Column(String(255), nullable=False, default="Anonymous")
    avatar_url = Column(String(1000), nullable=True)

    # Public identity shown on uploads; the real name is never exposed
    anon_name = Column(String(100), nullable=False, default=generate_anon_name)
    anon_avatar_seed = Column(String(64), nullable=False, default=generate_avatar_seed)

    role = Column(value_enum(UserRole), nullable=False, default=UserRole.USER)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def anon_avatar_url(self) -> str | None:
        if not self.anon_avatar_seed:
            return None
        return f"https://api.dicebear.com/7.x/bottts/svg?seed={self.anon_avatar_seed}"
