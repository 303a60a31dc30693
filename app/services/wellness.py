import logging
from typing import List, Optional, Tuple
from sqlmodel import Session, select, func, col

from app.core.security import Identity
from app.models.wellness import WellnessEntry, Mood
from app.services.audit import AuditLogger

logger = logging.getLogger(__name__)

PAGE_SIZE = 10

class WellnessService:
    """Check-ins are private: every query is scoped to the acting user."""

    def __init__(self, session: Session, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit

    def create_checkin(self, actor: Identity, mood: Mood, stress: int, notes: Optional[str] = None) -> WellnessEntry:
        entry = WellnessEntry(user_id=actor.id, mood=mood, stress=stress, notes=notes or None)
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        logger.info("Wellness check-in %s recorded for %s", entry.id, actor.id)
        if self.audit:
            # No mood/notes in the audit trail
            self.audit.record("create", "wellness", entry.id, actor.id)
        return entry

    def list_checkins(self, actor: Identity, page: int = 1) -> Tuple[List[WellnessEntry], int]:
        total = self.session.exec(
            select(func.count(WellnessEntry.id)).where(WellnessEntry.user_id == actor.id)
        ).one()
        entries = self.session.exec(
            select(WellnessEntry)
            .where(WellnessEntry.user_id == actor.id)
            .order_by(col(WellnessEntry.created_at).desc(), col(WellnessEntry.id).desc())
            .offset((page - 1) * PAGE_SIZE)
            .limit(PAGE_SIZE)
        ).all()
        return entries, total
