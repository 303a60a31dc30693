import logging
from app.core.timeutils import utcnow
from typing import List, Optional, Tuple
from sqlmodel import Session, select, func, or_, col

from app.core.errors import NotFound, ValidationError
from app.core.security import Identity
from app.models.user import User, Role
from app.models.post import Post
from app.models.comment import Comment
from app.services.audit import AuditLogger

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, session: Session, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit

    def list_users(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Tuple[List[User], int]:
        query = select(User)
        if search:
            query = query.where(
                or_(
                    col(User.name).ilike(f"%{search}%"),
                    col(User.email).ilike(f"%{search}%")
                )
            )

        total = self.session.exec(select(func.count()).select_from(query.subquery())).one()
        users = self.session.exec(
            query.order_by(col(User.created_at).desc(), col(User.id).desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return users, total

    def get_user_by_id(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def update_user(self, actor: Identity, user_id: int, name: Optional[str] = None, role: Optional[Role] = None) -> User:
        user = self.get_user_by_id(user_id)

        if name is not None:
            user.name = name
        if role is not None:
            user.role = role

        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info("User %s updated by %s", user.id, actor.id)
        if self.audit:
            self.audit.record("update", "user", user.id, actor.id, {"role": user.role.value})
        return user

    def delete_user(self, actor: Identity, user_id: int):
        """Hard delete; posts, comments, password history and check-ins go with it."""
        if user_id == actor.id:
            raise ValidationError("You cannot delete your own account")

        user = self.get_user_by_id(user_id)
        self.session.delete(user)
        self.session.commit()
        logger.info("User %s deleted by %s", user_id, actor.id)
        if self.audit:
            self.audit.record("delete", "user", user_id, actor.id)

    def get_stats(self) -> dict:
        return {
            "users": self.session.exec(select(func.count(User.id))).one(),
            "posts": self.session.exec(select(func.count(Post.id))).one(),
            "comments": self.session.exec(
                select(func.count(Comment.id)).where(col(Comment.deleted_at).is_(None))
            ).one(),
        }
