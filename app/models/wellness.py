from typing import Optional
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel
from app.core.timeutils import utcnow

class Mood(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    OKAY = "okay"
    LOW = "low"
    DIFFICULT = "difficult"

class WellnessEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", ondelete="CASCADE", index=True)

    mood: Mood
    stress: int = Field(ge=1, le=10)  # 1-10
    notes: Optional[str] = Field(default=None, max_length=2000)

    created_at: datetime = Field(default_factory=utcnow)
