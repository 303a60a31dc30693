from typing import Optional
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel
from app.core.timeutils import utcnow

class Role(str, Enum):
    ADMIN = "admin"  # Full access, user management
    EDITOR = "editor"  # All post/comment operations incl. bulk
    READER = "reader"  # Own posts/comments, wellness

class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Basic Info
    name: str
    email: str = Field(unique=True, index=True)
    password_hash: str

    # Access
    role: Role = Field(default=Role.READER)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class PasswordHistory(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", ondelete="CASCADE", index=True)
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)
