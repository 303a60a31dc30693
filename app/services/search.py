from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlmodel import Session, select, func, or_, col

from app.core.rbac import has_permission
from app.core.security import Identity
from app.core.timeutils import as_utc
from app.models.comment import Comment
from app.models.post import Post, PostStatus
from app.models.user import User

SEARCH_TYPES = ("all", "posts", "comments", "users")

def _author(user: User) -> Dict[str, Any]:
    return {"id": user.id, "name": user.name, "email": user.email}

class SearchService:
    def __init__(self, session: Session):
        self.session = session

    def search(
        self,
        identity: Identity,
        query: str,
        type: str = "all",
        author: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        results: Dict[str, Any] = {"posts": [], "comments": [], "users": []}
        total = 0
        offset = (page - 1) * limit
        pattern = f"%{query}%"
        date_from, date_to = as_utc(date_from), as_utc(date_to)

        if type in ("all", "posts"):
            filters = [
                Post.status == PostStatus.PUBLISHED,
                or_(col(Post.title).ilike(pattern), col(Post.content).ilike(pattern)),
            ]
            if author:
                filters.append(col(User.email).ilike(f"%{author}%"))
            if date_from:
                filters.append(col(Post.published_at) >= date_from)
            if date_to:
                filters.append(col(Post.published_at) <= date_to)

            base = select(Post, User).join(User, col(Post.author_id) == col(User.id)).where(*filters)
            total += self._count(base)
            rows = self.session.exec(
                base.order_by(col(Post.published_at).desc(), col(Post.id).desc()).offset(offset).limit(limit)
            ).all()
            results["posts"] = [
                {
                    "id": post.id,
                    "title": post.title,
                    "slug": post.slug,
                    "excerpt": post.excerpt,
                    "published_at": post.published_at,
                    "author": _author(user),
                }
                for post, user in rows
            ]

        if type in ("all", "comments"):
            filters = [col(Comment.deleted_at).is_(None), col(Comment.content).ilike(pattern)]
            if author:
                filters.append(col(User.email).ilike(f"%{author}%"))
            if date_from:
                filters.append(col(Comment.created_at) >= date_from)
            if date_to:
                filters.append(col(Comment.created_at) <= date_to)

            base = (
                select(Comment, User, Post)
                .join(User, col(Comment.author_id) == col(User.id))
                .join(Post, col(Comment.post_id) == col(Post.id))
                .where(*filters)
            )
            total += self._count(base)
            rows = self.session.exec(
                base.order_by(col(Comment.created_at).desc(), col(Comment.id).desc()).offset(offset).limit(limit)
            ).all()
            results["comments"] = [
                {
                    "id": comment.id,
                    "content": comment.content,
                    "created_at": comment.created_at,
                    "author": _author(user),
                    "post": {"id": post.id, "title": post.title, "slug": post.slug},
                }
                for comment, user, post in rows
            ]

        # Directory lookups expose e-mail addresses, so they need user management rights
        if type in ("all", "users") and has_permission(identity.role, "users:read"):
            base = select(User).where(or_(col(User.name).ilike(pattern), col(User.email).ilike(pattern)))
            total += self._count(base)
            users: List[User] = self.session.exec(
                base.order_by(col(User.created_at).desc(), col(User.id).desc()).offset(offset).limit(limit)
            ).all()
            results["users"] = [
                {**_author(user), "role": user.role.value, "created_at": user.created_at}
                for user in users
            ]

        results["pagination"] = {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        }
        return results

    def _count(self, query) -> int:
        return self.session.exec(select(func.count()).select_from(query.subquery())).one()
