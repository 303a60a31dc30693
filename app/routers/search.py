from datetime import datetime
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from app.db.session import get_session
from app.core.auth import get_current_identity
from app.core.security import Identity
from app.services.search import SearchService

router = APIRouter()

def get_search_service(session: Session = Depends(get_session)) -> SearchService:
    return SearchService(session)

@router.get("/")
def search(
    query: str = Query(..., min_length=1),
    type: Literal["all", "posts", "comments", "users"] = "all",
    author: Optional[str] = None,
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(get_current_identity),
    service: SearchService = Depends(get_search_service)
):
    """Search published posts, comments and (for user managers) users"""
    return service.search(
        identity,
        query.strip(),
        type=type,
        author=author,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )
