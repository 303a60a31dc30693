from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from pydantic import AfterValidator, BaseModel, Field
from app.db.session import get_session
from app.core.auth import require_permission
from app.core.security import Identity
from app.models.post import Post, PostStatus
from app.models.user import User
from app.services.audit import get_audit_logger, AuditLogger
from app.services.comment import CommentService
from app.services.post import PostService

router = APIRouter()


def _check_url(value: Optional[str]) -> Optional[str]:
    if value and not value.startswith(("http://", "https://")):
        raise ValueError("featured_image must be an http(s) URL")
    return value

ImageUrl = Annotated[Optional[str], AfterValidator(_check_url)]

class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    excerpt: Optional[str] = None
    slug: Optional[str] = None  # derived from the title when missing
    status: PostStatus = PostStatus.DRAFT
    featured_image: ImageUrl = None
    category: Optional[str] = None
    tags: List[str] = []
    meta_title: Optional[str] = None
    meta_description: Optional[str] = Field(default=None, max_length=160)
    focus_keyword: Optional[str] = None

class PostUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    excerpt: Optional[str] = None
    slug: Optional[str] = Field(default=None, min_length=1)
    status: Optional[PostStatus] = None
    featured_image: ImageUrl = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = Field(default=None, max_length=160)
    focus_keyword: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)

class BulkPostUpdate(BaseModel):
    id: int
    data: PostUpdate

class BulkUpdateRequest(BaseModel):
    posts: List[BulkPostUpdate] = Field(min_length=1)

class BulkDeleteRequest(BaseModel):
    post_ids: List[int] = Field(min_length=1)


def get_post_service(
    session: Session = Depends(get_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> PostService:
    return PostService(session, audit)

def get_comment_service(session: Session = Depends(get_session)) -> CommentService:
    return CommentService(session)

def serialize_post(post: Post, author: Optional[User] = None, **extra) -> dict:
    data = post.model_dump()
    if author is not None:
        data["author"] = {"id": author.id, "name": author.name, "email": author.email}
    data.update(extra)
    return data


@router.get("/")
def read_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[PostStatus] = None,
    author_id: Optional[int] = Query(None, alias="authorId"),
    category: Optional[str] = None,
    tag: Optional[str] = None,
    identity: Identity = Depends(require_permission("posts:read")),
    service: PostService = Depends(get_post_service)
):
    rows, total = service.list_posts(page, limit, status=status, author_id=author_id, category=category, tag=tag)
    return {
        "posts": [serialize_post(post, author, comment_count=count) for post, author, count in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    }

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_post(
    post_in: PostCreate,
    identity: Identity = Depends(require_permission("posts:create")),
    service: PostService = Depends(get_post_service)
):
    post = service.create_post(identity, post_in.model_dump())
    return {"post": serialize_post(post, service.get_author(post))}

# Bulk routes are declared before /{post_id} so the path segment isn't read as an id
@router.patch("/bulk-update")
def bulk_update_posts(
    bulk_in: BulkUpdateRequest,
    identity: Identity = Depends(require_permission("posts:bulk-update")),
    service: PostService = Depends(get_post_service)
):
    posts = service.bulk_update(identity, [{"id": item.id, "data": item.data.changes()} for item in bulk_in.posts])
    return {
        "message": f"Successfully updated {len(posts)} post(s)",
        "count": len(posts),
        "posts": [serialize_post(post) for post in posts],
    }

@router.post("/bulk-delete")
def bulk_delete_posts(
    bulk_in: BulkDeleteRequest,
    identity: Identity = Depends(require_permission("posts:delete")),
    service: PostService = Depends(get_post_service)
):
    count = service.bulk_delete(identity, bulk_in.post_ids)
    return {"message": f"Successfully deleted {count} post(s)", "count": count}

@router.get("/{post_id}")
def read_post(
    post_id: int,
    identity: Identity = Depends(require_permission("posts:read")),
    service: PostService = Depends(get_post_service),
    comments: CommentService = Depends(get_comment_service)
):
    """Counts a view on every call."""
    post = service.get_post(post_id)
    return {
        "post": serialize_post(
            post,
            service.get_author(post),
            comments=[node.model_dump() for node in comments.assemble_tree(post.id)],
        )
    }

@router.patch("/{post_id}")
def update_post(
    post_id: int,
    post_in: PostUpdate,
    identity: Identity = Depends(require_permission("posts:update")),
    service: PostService = Depends(get_post_service)
):
    post = service.update_post(identity, post_id, post_in.changes())
    return {"post": serialize_post(post, service.get_author(post))}

@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    identity: Identity = Depends(require_permission("posts:delete")),
    service: PostService = Depends(get_post_service)
):
    service.delete_post(identity, post_id)
    return {"message": "Post deleted successfully"}
