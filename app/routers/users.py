from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.db.session import get_session
from app.core.auth import get_current_identity
from app.core.rbac import get_role_permissions
from app.core.security import Identity
from app.routers.auth import public_user
from app.services.user import UserService

router = APIRouter()

def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)

@router.get("/me")
def read_user_me(
    identity: Identity = Depends(get_current_identity),
    service: UserService = Depends(get_user_service)
):
    """
    Get current user, as stored now rather than as the credential remembers it.
    """
    user = service.get_user_by_id(identity.id)
    return {
        "user": public_user(user),
        "permissions": sorted(get_role_permissions(user.role.value)),
    }
