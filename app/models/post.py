from typing import Optional, List
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON, Text
from app.core.timeutils import utcnow

class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

class Post(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Author
    author_id: int = Field(foreign_key="user.id", ondelete="CASCADE", index=True)

    # Content
    title: str = Field(index=True, max_length=200)
    slug: str = Field(unique=True, index=True)  # URL-friendly title
    excerpt: Optional[str] = None
    content: str = Field(sa_column=Column(Text, nullable=False))

    # Categorization
    category: Optional[str] = Field(default=None, index=True)
    tags: List[str] = Field(default=[], sa_column=Column(JSON))

    # SEO
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    focus_keyword: Optional[str] = None
    featured_image: Optional[str] = None

    # Status
    status: PostStatus = Field(default=PostStatus.DRAFT, index=True)
    published_at: Optional[datetime] = None  # first publication only

    # Stats
    view_count: int = Field(default=0)
    reading_time: int = Field(default=1)  # minutes

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
