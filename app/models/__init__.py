from app.models.user import User, UserRole
from app.models.pending_image import PendingImageBatch, ImageBatchStatus
from app.models.document import (
    Document,
    DocumentStatus,
    DocumentType,
    Medium,
    VoteType,
    DocumentVote,
    UserDownload,
    UserSaved,
)
from app.models.comment import Comment, HappinessLevel
from app.models.thank_you import ThankYouMessage, ThankYouStatus, SentimentCategory
from app.models.notification import Notification, NotificationType
from app.models.failed_search import FailedSearch
from app.models.recommendation import Recommendation, RecommendationStatus
from app.models.system_setting import SystemSetting
from app.models.audit_log import AuditLog, AuditAction

__all__ = [
    "User",
    "UserRole",
    "PendingImageBatch",
    "ImageBatchStatus",
    "Document",
    "DocumentStatus",
    "DocumentType",
    "Medium",
    "VoteType",
    "DocumentVote",
    "UserDownload",
    "UserSaved",
    "Comment",
    "HappinessLevel",
    "ThankYouMessage",
    "ThankYouStatus",
    "SentimentCategory",
    "Notification",
    "NotificationType",
    "FailedSearch",
    "Recommendation",
    "RecommendationStatus",
    "SystemSetting",
    "AuditLog",
    "AuditAction",
]
