from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from pydantic import BaseModel, Field
from app.db.session import get_session
from app.core.auth import require_permission
from app.core.security import Identity
from app.models.comment import Comment
from app.models.user import User
from app.services.audit import get_audit_logger, AuditLogger
from app.services.comment import CommentService, MAX_COMMENT_LENGTH

router = APIRouter()

class CommentCreate(BaseModel):
    post_id: int
    content: str = Field(min_length=1, max_length=MAX_COMMENT_LENGTH)
    parent_id: Optional[int] = None

class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=MAX_COMMENT_LENGTH)

def get_comment_service(
    session: Session = Depends(get_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> CommentService:
    return CommentService(session, audit)

def serialize_comment(comment: Comment, author: User) -> dict:
    data = comment.model_dump(exclude={"deleted_at"})
    data["author"] = {"id": author.id, "name": author.name, "email": author.email}
    return data


@router.get("/")
def read_comments(
    post_id: int = Query(..., alias="postId"),
    identity: Identity = Depends(require_permission("comments:read")),
    service: CommentService = Depends(get_comment_service)
):
    """Comment thread of a post, nested and without soft-deleted entries"""
    tree = service.assemble_tree(post_id)
    return {"comments": [node.model_dump() for node in tree]}

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_comment(
    comment_in: CommentCreate,
    identity: Identity = Depends(require_permission("comments:create")),
    service: CommentService = Depends(get_comment_service)
):
    comment = service.create_comment(identity, comment_in.post_id, comment_in.content, comment_in.parent_id)
    return {"comment": serialize_comment(comment, service.author_of(comment))}

@router.patch("/{comment_id}")
def update_comment(
    comment_id: int,
    comment_in: CommentUpdate,
    identity: Identity = Depends(require_permission("comments:update")),
    service: CommentService = Depends(get_comment_service)
):
    comment = service.update_comment(identity, comment_id, comment_in.content)
    return {"comment": serialize_comment(comment, service.author_of(comment))}

@router.delete("/{comment_id}")
def delete_comment(
    comment_id: int,
    identity: Identity = Depends(require_permission("comments:delete")),
    service: CommentService = Depends(get_comment_service)
):
    service.soft_delete_comment(identity, comment_id)
    return {"message": "Comment deleted successfully"}
