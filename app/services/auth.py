import logging
from app.core.timeutils import utcnow
from typing import Optional
from sqlmodel import Session, select, func, col
from sqlalchemy.exc import IntegrityError

from app.core.config import Settings
from app.core.errors import Conflict, Unauthenticated, ValidationError
from app.core.security import (
    Identity,
    ResetCredentials,
    SessionCredentials,
    get_password_hash,
    password_fingerprint,
    validate_password_strength,
    verify_password,
)
from app.models.user import User, Role, PasswordHistory
from app.services.audit import AuditLogger
from app.services.email import send_password_reset_email

logger = logging.getLogger(__name__)

INVALID_RESET_TOKEN = "Invalid or expired reset token"
PASSWORD_REUSED = "You cannot reuse a recent password. Please choose a different password."

def identity_for(user: User) -> Identity:
    role = user.role.value if isinstance(user.role, Role) else user.role
    return Identity(id=user.id, email=user.email, name=user.name, role=role)

class AuthService:
    def __init__(self, session: Session, settings: Settings, audit: Optional[AuditLogger] = None):
        self.session = session
        self.settings = settings
        self.audit = audit
        self.session_credentials = SessionCredentials(settings)
        self.reset_credentials = ResetCredentials(settings)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(func.lower(User.email) == email.strip().lower())).first()

    def signup(self, email: str, name: str, password: str) -> User:
        if self.get_user_by_email(email):
            raise Conflict("User with this email already exists")

        password_hash = get_password_hash(password)
        # Self-registration is always a reader; other roles come from seeding or an admin
        user = User(email=email.strip().lower(), name=name, password_hash=password_hash, role=Role.READER)
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            raise Conflict("User with this email already exists")

        self._record_password(user.id, password_hash)
        self.session.commit()
        self.session.refresh(user)
        logger.info("User %s signed up", user.id)
        self._audit("create", "user", user.id, user.id)
        return user

    def authenticate_user(self, email: str, password: str) -> User:
        user = self.get_user_by_email(email)
        # Same answer for unknown email and wrong password
        if not user or not verify_password(password, user.password_hash):
            raise Unauthenticated("Invalid email or password")
        return user

    def create_access_token(self, user: User) -> str:
        return self.session_credentials.issue(identity_for(user))

    def request_password_reset(self, email: str) -> Optional[str]:
        """Issue and mail a reset credential; returns None for unknown emails."""
        user = self.get_user_by_email(email)
        if not user:
            logger.info("Password reset requested for unknown email")
            return None

        token = self.reset_credentials.issue(user.id, user.password_hash)
        send_password_reset_email(self.settings, user.email, user.name, token)
        logger.info("Password reset issued for user %s", user.id)
        return token

    def reset_password(self, token: str, new_password: str) -> User:
        claims = self.reset_credentials.verify(token)
        user = self.session.get(User, claims.user_id) if claims else None
        # Expired, forged, already used, or user gone: all look the same to the caller
        if not user or claims.fingerprint != password_fingerprint(user.password_hash):
            raise ValidationError(INVALID_RESET_TOKEN)

        try:
            validate_password_strength(new_password)
        except ValueError as exc:
            raise ValidationError(str(exc))

        if self.was_recently_used(user.id, new_password):
            raise ValidationError(PASSWORD_REUSED)

        password_hash = get_password_hash(new_password)
        user.password_hash = password_hash
        user.updated_at = utcnow()
        self.session.add(user)
        self._record_password(user.id, password_hash)
        self.session.commit()
        self.session.refresh(user)
        logger.info("Password reset for user %s", user.id)
        self._audit("update", "password", user.id, user.id)
        return user

    def was_recently_used(self, user_id: int, password: str) -> bool:
        recent = self.session.exec(
            select(PasswordHistory)
            .where(PasswordHistory.user_id == user_id)
            .order_by(col(PasswordHistory.created_at).desc(), col(PasswordHistory.id).desc())
            .limit(self.settings.PASSWORD_HISTORY_LIMIT)
        ).all()
        return any(verify_password(password, entry.password_hash) for entry in recent)

    def _record_password(self, user_id: int, password_hash: str):
        """Append to history and keep only the newest PASSWORD_HISTORY_LIMIT entries."""
        self.session.add(PasswordHistory(user_id=user_id, password_hash=password_hash))
        self.session.flush()

        entries = self.session.exec(
            select(PasswordHistory)
            .where(PasswordHistory.user_id == user_id)
            .order_by(col(PasswordHistory.created_at).desc(), col(PasswordHistory.id).desc())
        ).all()
        for stale in entries[self.settings.PASSWORD_HISTORY_LIMIT:]:
            self.session.delete(stale)

    def _audit(self, action: str, resource: str, resource_id: int, actor_id: int):
        if self.audit:
            self.audit.record(action, resource, resource_id, actor_id)
