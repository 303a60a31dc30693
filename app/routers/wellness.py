from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from pydantic import BaseModel, Field
from app.db.session import get_session
from app.core.auth import require_permission
from app.core.security import Identity
from app.models.wellness import Mood
from app.services.audit import get_audit_logger, AuditLogger
from app.services.wellness import WellnessService, PAGE_SIZE

router = APIRouter()

class CheckinCreate(BaseModel):
    mood: Mood
    stress: int = Field(ge=1, le=10)
    notes: Optional[str] = Field(default=None, max_length=2000)

def get_wellness_service(
    session: Session = Depends(get_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> WellnessService:
    return WellnessService(session, audit)

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_checkin(
    checkin_in: CheckinCreate,
    identity: Identity = Depends(require_permission("wellness:create")),
    service: WellnessService = Depends(get_wellness_service)
):
    entry = service.create_checkin(identity, checkin_in.mood, checkin_in.stress, checkin_in.notes)
    return {"entry": entry.model_dump()}

@router.get("/")
def read_checkins(
    page: int = Query(1, ge=1),
    identity: Identity = Depends(require_permission("wellness:read")),
    service: WellnessService = Depends(get_wellness_service)
):
    """The caller's own check-ins, newest first"""
    entries, total = service.list_checkins(identity, page)
    return {
        "entries": [entry.model_dump() for entry in entries],
        "pagination": {
            "page": page,
            "limit": PAGE_SIZE,
            "total": total,
            "totalPages": (total + PAGE_SIZE - 1) // PAGE_SIZE,
        },
    }
