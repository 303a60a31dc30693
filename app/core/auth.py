import logging
from typing import Callable, Optional

from fastapi import Request
from fastapi.security.utils import get_authorization_scheme_param

from app.core.errors import Forbidden, InvalidCredential, Unauthenticated
from app.core.rbac import has_permission
from app.core.security import Identity, SessionCredentials

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"


def extract_token(request: Request) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    authorization = request.headers.get("Authorization")
    scheme, param = get_authorization_scheme_param(authorization)
    if authorization and scheme.lower() == "bearer" and param:
        return param
    return request.cookies.get(TOKEN_COOKIE) or None


def authenticate(request: Request) -> Identity:
    token = extract_token(request)
    if not token:
        raise Unauthenticated("No token provided")

    credentials: SessionCredentials = request.app.state.session_credentials
    identity = credentials.verify(token)
    if identity is None:
        logger.warning("Rejected credential on %s %s", request.method, request.url.path)
        raise InvalidCredential()
    return identity


def authorize_permission(request: Request, permission: str) -> Identity:
    identity = authenticate(request)
    if not has_permission(identity.role, permission):
        logger.warning("User %s (%s) denied %s", identity.id, identity.role, permission)
        raise Forbidden()
    return identity


def get_current_identity(request: Request) -> Identity:
    return authenticate(request)


def require_permission(permission: str) -> Callable[[Request], Identity]:
    """Dependency for a handler that needs ``permission``."""
    def dependency(request: Request) -> Identity:
        return authorize_permission(request, permission)

    dependency.__name__ = f"require_{permission.replace(':', '_').replace('-', '_')}"
    return dependency
