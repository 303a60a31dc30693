# Import all models to register them with SQLModel
from app.models.user import User, Role, PasswordHistory
from app.models.post import Post, PostStatus
from app.models.comment import Comment
from app.models.wellness import WellnessEntry, Mood
from app.models.audit import AuditLog

__all__ = [
    "User",
    "Role",
    "PasswordHistory",
    "Post",
    "PostStatus",
    "Comment",
    "WellnessEntry",
    "Mood",
    "AuditLog",
]
