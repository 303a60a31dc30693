from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import JSON
from app.core.timeutils import utcnow

class AuditLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    action: str = Field(index=True)  # e.g. UPDATE_POST
    resource: str
    resource_id: Optional[int] = None
    # No foreign key: the trail outlives deleted users
    actor_id: Optional[int] = Field(default=None, index=True)
    details: dict = Field(default={}, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
