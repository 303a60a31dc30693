from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from pydantic import BaseModel, Field
from app.db.session import get_session
from app.core.auth import require_permission
from app.core.security import Identity
from app.models.user import Role
from app.routers.auth import public_user
from app.services.audit import get_audit_logger, AuditLogger
from app.services.user import UserService

router = APIRouter()

class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    role: Optional[Role] = None

def get_user_service(
    session: Session = Depends(get_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> UserService:
    return UserService(session, audit)

@router.get("/stats")
def get_stats(
    identity: Identity = Depends(require_permission("admin:access")),
    service: UserService = Depends(get_user_service)
):
    """Counts for the admin overview"""
    return service.get_stats()

@router.get("/users")
def get_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    identity: Identity = Depends(require_permission("users:read")),
    service: UserService = Depends(get_user_service)
):
    """Get all users with pagination and search"""
    users, total = service.list_users(page=page, limit=limit, search=search)
    return {
        "users": [public_user(user) for user in users],
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit
    }

@router.get("/users/{user_id}")
def get_user(
    user_id: int,
    identity: Identity = Depends(require_permission("users:read")),
    service: UserService = Depends(get_user_service)
):
    return {"user": public_user(service.get_user_by_id(user_id))}

@router.patch("/users/{user_id}")
def update_user(
    user_id: int,
    user_in: UserUpdate,
    identity: Identity = Depends(require_permission("users:update")),
    service: UserService = Depends(get_user_service)
):
    """Change a user's name or role"""
    user = service.update_user(identity, user_id, name=user_in.name, role=user_in.role)
    return {"user": public_user(user)}

@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    identity: Identity = Depends(require_permission("users:delete")),
    service: UserService = Depends(get_user_service)
):
    """Delete user together with everything they own"""
    service.delete_user(identity, user_id)
    return {"message": "User deleted successfully"}
