from app.schemas.common import ok
from app.schemas.user import UserResponse, UserSyncRequest, PublicProfile
from app.schemas.notification import NotificationResponse
from app.schemas.comment import CommentCreate, CommentResponse
from app.schemas.recommendation import RecommendationCreate, RecommendationResponse

__all__ = [
    "ok",
    "UserResponse", "UserSyncRequest", "PublicProfile",
    "NotificationResponse",
    "CommentCreate", "CommentResponse",
    "RecommendationCreate", "RecommendationResponse",
]
