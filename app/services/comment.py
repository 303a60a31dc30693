"""Threaded comments.

Comments are stored flat: every row keeps the id of its post and, for replies,
the id of its parent. Reading a thread loads all rows of the post in one query
and links them in memory, so nesting depth costs nothing extra and is never
capped.

Soft-deleted comments stay in the table. They are dropped from the tree, but
their surviving replies are not: those move up into the slot the deleted
comment occupied.
"""
import logging
from collections import defaultdict
from datetime import datetime

from app.core.timeutils import utcnow
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel
from sqlmodel import Session, select, col

from app.core.errors import Forbidden, NotFound, ValidationError
from app.core.rbac import can_modify_own_resource
from app.core.security import Identity
from app.models.comment import Comment
from app.models.post import Post
from app.models.user import User
from app.services.audit import AuditLogger

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 5000


class CommentAuthor(BaseModel):
    id: int
    name: str
    email: str


class CommentNode(BaseModel):
    id: int
    content: str
    author: CommentAuthor
    created_at: datetime
    replies: List["CommentNode"] = []


def _node(comment: Comment, author: User, replies: List[CommentNode]) -> CommentNode:
    return CommentNode(
        id=comment.id,
        content=comment.content,
        author=CommentAuthor(id=author.id, name=author.name, email=author.email),
        created_at=comment.created_at,
        replies=replies,
    )


def build_comment_tree(rows: Iterable[Tuple[Comment, User]]) -> List[CommentNode]:
    """Turn the flat (comment, author) rows of one post into an ordered forest."""
    ordered = sorted(rows, key=lambda row: (row[0].created_at, row[0].id))
    arena: Dict[int, Tuple[Comment, User]] = {comment.id: (comment, author) for comment, author in ordered}

    roots: List[int] = []
    children: Dict[int, List[int]] = defaultdict(list)
    for comment, _ in ordered:
        if comment.parent_id is None:
            roots.append(comment.id)
        elif comment.parent_id in arena:
            children[comment.parent_id].append(comment.id)
        else:
            logger.warning("Comment %s references missing parent %s", comment.id, comment.parent_id)

    # Post-order walk with an explicit stack so deep threads can't hit the recursion limit.
    # emitted[id] is what a comment contributes to its parent's replies: itself, or
    # its visible replies when it is soft-deleted.
    emitted: Dict[int, List[CommentNode]] = {}
    stack: List[Tuple[int, bool]] = [(comment_id, False) for comment_id in reversed(roots)]
    while stack:
        comment_id, expanded = stack.pop()
        kids = children.get(comment_id, [])
        if not expanded:
            stack.append((comment_id, True))
            stack.extend((kid, False) for kid in reversed(kids))
            continue

        replies = [node for kid in kids for node in emitted.pop(kid)]
        comment, author = arena[comment_id]
        if comment.deleted_at is not None:
            emitted[comment_id] = replies
        else:
            emitted[comment_id] = [_node(comment, author, replies)]

    return [node for comment_id in roots for node in emitted.pop(comment_id)]


class CommentService:
    def __init__(self, session: Session, audit: Optional[AuditLogger] = None):
        self.session = session
        self.audit = audit

    def assemble_tree(self, post_id: int) -> List[CommentNode]:
        if not self.session.get(Post, post_id):
            raise NotFound("Post not found")

        rows = self.session.exec(
            select(Comment, User)
            .join(User, col(Comment.author_id) == col(User.id))
            .where(Comment.post_id == post_id)
            .order_by(col(Comment.created_at), col(Comment.id))
        ).all()
        return build_comment_tree(rows)

    def get_comment(self, comment_id: int) -> Comment:
        comment = self.session.get(Comment, comment_id)
        if not comment or comment.deleted_at is not None:
            raise NotFound("Comment not found")
        return comment

    def create_comment(self, actor: Identity, post_id: int, content: str, parent_id: Optional[int] = None) -> Comment:
        self._validate_content(content)

        if not self.session.get(Post, post_id):
            raise NotFound("Post not found")

        if parent_id is not None:
            # Replying under a soft-deleted comment is allowed
            parent = self.session.get(Comment, parent_id)
            if not parent or parent.post_id != post_id:
                raise NotFound("Parent comment not found")

        comment = Comment(post_id=post_id, author_id=actor.id, parent_id=parent_id, content=content)
        self.session.add(comment)
        self.session.commit()
        self.session.refresh(comment)
        logger.info("Comment %s created on post %s by %s", comment.id, post_id, actor.id)
        self._audit("create", comment.id, actor, {"post_id": post_id, "parent_id": parent_id})
        return comment

    def update_comment(self, actor: Identity, comment_id: int, content: str) -> Comment:
        self._validate_content(content)

        comment = self.get_comment(comment_id)
        if not can_modify_own_resource(actor.role, comment.author_id, actor.id):
            logger.warning("User %s may not update comment %s", actor.id, comment_id)
            raise Forbidden()

        comment.content = content
        comment.updated_at = utcnow()
        self.session.add(comment)
        self.session.commit()
        self.session.refresh(comment)
        self._audit("update", comment.id, actor)
        return comment

    def soft_delete_comment(self, actor: Identity, comment_id: int) -> Comment:
        comment = self.get_comment(comment_id)
        if not can_modify_own_resource(actor.role, comment.author_id, actor.id):
            logger.warning("User %s may not delete comment %s", actor.id, comment_id)
            raise Forbidden()

        comment.deleted_at = utcnow()
        self.session.add(comment)
        self.session.commit()
        self.session.refresh(comment)
        logger.info("Comment %s soft-deleted by %s", comment_id, actor.id)
        self._audit("delete", comment.id, actor, {"soft": True})
        return comment

    def author_of(self, comment: Comment) -> User:
        return self.session.get(User, comment.author_id)

    @staticmethod
    def _validate_content(content: str):
        if not content:
            raise ValidationError("Comment content is required")
        if len(content) > MAX_COMMENT_LENGTH:
            raise ValidationError("Comment too long")

    def _audit(self, action: str, comment_id: int, actor: Identity, details: Optional[dict] = None):
        if self.audit:
            self.audit.record(action, "comment", comment_id, actor.id, details)


CommentNode.model_rebuild()
