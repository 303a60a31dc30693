import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import Settings, settings as default_settings
from app.core.logging import configure_logging
from app.core.security import SessionCredentials
from app.db.session import Database
from app.services.audit import AuditLogger

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.db.create_db_and_tables()
    logger.info("%s started", app.title)
    yield
    app.state.db.dispose()


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part not in ("body", "query", "path")),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation error", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        lifespan=lifespan,
        description="API for the Inkwell blogging platform"
    )

    app.state.settings = settings
    app.state.db = Database(settings)
    app.state.session_credentials = SessionCredentials(settings)
    app.state.audit = AuditLogger(app.state.db, enabled=settings.ENABLE_AUDIT_LOGGING)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/")
    def read_root():
        return {"message": f"Welcome to {settings.PROJECT_NAME}. Visit /docs for Swagger UI."}

    from app.routers import auth, users, posts, comments, search, wellness, admin

    app.include_router(auth.router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
    app.include_router(posts.router, prefix="/api/v1/posts", tags=["posts"])
    app.include_router(comments.router, prefix="/api/v1/comments", tags=["comments"])
    app.include_router(search.router, prefix="/api/v1/search", tags=["search"])
    app.include_router(wellness.router, prefix="/api/v1/wellness", tags=["wellness"])
    app.include_router(admin.router, prefix="/api/v1/admin", tags=["admin"])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    return app


app = create_app()
