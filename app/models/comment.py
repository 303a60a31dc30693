from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Text
from app.core.timeutils import utcnow

class Comment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # References (replies carry the root post id too)
    post_id: int = Field(foreign_key="post.id", ondelete="CASCADE", index=True)
    author_id: int = Field(foreign_key="user.id", ondelete="CASCADE", index=True)
    parent_id: Optional[int] = Field(default=None, foreign_key="comment.id", ondelete="CASCADE", index=True)

    content: str = Field(sa_column=Column(Text, nullable=False))

    # Soft delete: hidden from reads, row and replies kept
    deleted_at: Optional[datetime] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
