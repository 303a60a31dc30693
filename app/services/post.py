import logging
import math
import re
from app.core.timeutils import utcnow
from typing import Any, Dict, List, Optional, Tuple
from sqlmodel import Session, select, func, col
from sqlalchemy import String, cast, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.errors import AppError, Conflict, Forbidden, InternalError, NotFound, ValidationError
from app.core.rbac import can_modify_own_resource
from app.core.security import Identity
from app.models.comment import Comment
from app.models.post import Post, PostStatus
from app.models.user import User
from app.services.audit import AuditLogger

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200

# Fields a caller may set through create/update
EDITABLE_FIELDS = {
    "title", "content", "excerpt", "slug", "status", "category", "tags",
    "meta_title", "meta_description", "focus_keyword", "featured_image",
}

def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")

def compute_reading_time(content: str) -> int:
    return max(1, math.ceil(len(content.split()) / WORDS_PER_MINUTE))

class PostService:
    def __init__(self, session: Session, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit

    def list_posts(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[PostStatus] = None,
        author_id: Optional[int] = None,
        category: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Tuple[List[Tuple[Post, User, int]], int]:
        filters = []
        if status:
            filters.append(Post.status == status)
        if author_id:
            filters.append(Post.author_id == author_id)
        if category:
            filters.append(Post.category == category)
        if tag:
            # tags is a JSON array; match the quoted element in its text form
            filters.append(cast(Post.tags, String).like(f'%"{tag}"%'))

        total = self.session.exec(select(func.count(Post.id)).where(*filters)).one()

        comment_counts = (
            select(Comment.post_id, func.count(Comment.id).label("comment_count"))
            .where(col(Comment.deleted_at).is_(None))
            .group_by(Comment.post_id)
            .subquery()
        )
        rows = self.session.exec(
            select(Post, User, func.coalesce(comment_counts.c.comment_count, 0))
            .join(User, col(Post.author_id) == col(User.id))
            .outerjoin(comment_counts, comment_counts.c.post_id == Post.id)
            .where(*filters)
            .order_by(col(Post.created_at).desc(), col(Post.id).desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return [(post, author, count) for post, author, count in rows], total

    def get_post(self, post_id: int) -> Post:
        """Fetch a post for viewing. Every call counts as a view."""
        post = self.session.get(Post, post_id)
        if not post:
            raise NotFound("Post not found")

        # Increment in SQL so concurrent views are not lost
        self.session.exec(
            update(Post)
            .where(Post.id == post_id)
            .values(view_count=Post.view_count + 1, reading_time=compute_reading_time(post.content))
        )
        self.session.commit()
        self.session.refresh(post)
        return post

    def get_author(self, post: Post) -> User:
        return self.session.get(User, post.author_id)

    def create_post(self, actor: Identity, data: Dict[str, Any]) -> Post:
        data = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}

        slug = data.get("slug") or slugify(data["title"])
        if not slug:
            raise ValidationError("Could not derive a slug from the title")
        self._ensure_slug_available(slug)

        status = data.get("status") or PostStatus.DRAFT
        post = Post(
            **{**data, "slug": slug, "status": status},
            author_id=actor.id,
            reading_time=compute_reading_time(data["content"]),
            published_at=utcnow() if status == PostStatus.PUBLISHED else None,
        )
        self.session.add(post)
        self._commit_or_conflict()
        self.session.refresh(post)
        logger.info("Post %s created by %s", post.id, actor.id)
        self._audit("create", post.id, actor)
        return post

    def update_post(self, actor: Identity, post_id: int, data: Dict[str, Any]) -> Post:
        # Owner is read from the row as it is now, right before we write
        post = self.session.get(Post, post_id)
        if not post:
            raise NotFound("Post not found")
        if not can_modify_own_resource(actor.role, post.author_id, actor.id):
            logger.warning("User %s may not update post %s", actor.id, post_id)
            raise Forbidden()

        self._apply_update(post, data)
        self._commit_or_conflict()
        self.session.refresh(post)
        logger.info("Post %s updated by %s", post.id, actor.id)
        self._audit("update", post.id, actor, {"fields": sorted(data)})
        return post

    def delete_post(self, actor: Identity, post_id: int):
        post = self.session.get(Post, post_id)
        if not post:
            raise NotFound("Post not found")
        if not can_modify_own_resource(actor.role, post.author_id, actor.id):
            logger.warning("User %s may not delete post %s", actor.id, post_id)
            raise Forbidden()

        # Comments go with it (ON DELETE CASCADE)
        self.session.delete(post)
        self.session.commit()
        logger.info("Post %s deleted by %s", post_id, actor.id)
        self._audit("delete", post_id, actor)

    def bulk_update(self, actor: Identity, updates: List[Dict[str, Any]]) -> List[Post]:
        """Apply every update or none of them."""
        if not updates:
            raise ValidationError("posts array is required")

        ids = [item["id"] for item in updates]
        try:
            posts = self._lock_batch(actor, ids, "update")
            for item in updates:
                self._apply_update(posts[item["id"]], item["data"])
            self.session.commit()
        except AppError:
            self.session.rollback()
            raise
        except IntegrityError:
            self.session.rollback()
            raise Conflict("Post with this slug already exists")
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Bulk update failed for posts %s", ids)
            raise InternalError("Bulk update failed. All changes rolled back.")

        result = []
        for post_id in dict.fromkeys(ids):
            post = posts[post_id]
            self.session.refresh(post)
            result.append(post)
        logger.info("Bulk updated %d post(s) for %s", len(result), actor.id)
        for post in result:
            self._audit("update", post.id, actor, {"bulk": True})
        return result

    def bulk_delete(self, actor: Identity, ids: List[int]) -> int:
        if not ids:
            raise ValidationError("postIds array is required")

        try:
            posts = self._lock_batch(actor, ids, "delete")
            for post in posts.values():
                self.session.delete(post)
            self.session.commit()
        except AppError:
            self.session.rollback()
            raise
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Bulk delete failed for posts %s", ids)
            raise InternalError("Bulk delete failed. All changes rolled back.")

        logger.info("Bulk deleted %d post(s) for %s", len(posts), actor.id)
        for post_id in posts:
            self._audit("delete", post_id, actor, {"bulk": True})
        return len(posts)

    def _lock_batch(self, actor: Identity, ids: List[int], verb: str) -> Dict[int, Post]:
        """Open a serializable transaction and load the batch, checking every row."""
        # Must be the first thing this session does in the transaction
        self.session.connection(execution_options={"isolation_level": "SERIALIZABLE"})

        posts = {post.id: post for post in self.session.exec(select(Post).where(col(Post.id).in_(ids))).all()}
        missing = sorted(set(ids) - set(posts))
        if missing:
            raise NotFound(f"Post(s) not found: {', '.join(str(i) for i in missing)}")

        not_owned = [p.id for p in posts.values() if not can_modify_own_resource(actor.role, p.author_id, actor.id)]
        if not_owned:
            logger.warning("User %s may not %s posts %s", actor.id, verb, not_owned)
            raise Forbidden(f"You can only {verb} your own posts")
        return posts

    def _apply_update(self, post: Post, data: Dict[str, Any]):
        data = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}

        if "slug" in data:
            if not data["slug"]:
                raise ValidationError("Slug is required")
            if data["slug"] != post.slug:
                self._ensure_slug_available(data["slug"], exclude_id=post.id)

        for field, value in data.items():
            setattr(post, field, value)

        if "content" in data:
            post.reading_time = compute_reading_time(post.content)

        # published_at records the first publication and is never moved afterwards
        if data.get("status") == PostStatus.PUBLISHED and post.published_at is None:
            post.published_at = utcnow()

        post.updated_at = utcnow()
        self.session.add(post)

    def _ensure_slug_available(self, slug: str, exclude_id: Optional[int] = None):
        query = select(Post.id).where(Post.slug == slug)
        if exclude_id is not None:
            query = query.where(Post.id != exclude_id)
        if self.session.exec(query).first() is not None:
            raise Conflict("Post with this slug already exists")

    def _commit_or_conflict(self):
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise Conflict("Post with this slug already exists")

    def _audit(self, action: str, post_id: int, actor: Identity, details: Optional[dict] = None):
        if self.audit:
            self.audit.record(action, "post", post_id, actor.id, details)
