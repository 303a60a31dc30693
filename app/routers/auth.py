from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session
from pydantic import BaseModel, EmailStr, Field, field_validator
from app.db.session import get_session
from app.core.auth import TOKEN_COOKIE
from app.core.security import validate_password_strength
from app.models.user import User
from app.services.audit import get_audit_logger, AuditLogger
from app.services.auth import AuthService, identity_for

router = APIRouter()

RESET_REQUESTED = "If an account exists for that email, a reset link has been sent."


class SignupRequest(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1)
    password: str

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        return validate_password_strength(value)

class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

class PasswordResetRequest(BaseModel):
    email: EmailStr

class PasswordResetConfirm(BaseModel):
    token: str
    # strength is checked by the service once the token is known to be good
    password: str = Field(min_length=1)


def get_auth_service(
    request: Request,
    session: Session = Depends(get_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> AuthService:
    return AuthService(session, request.app.state.settings, audit)

def public_user(user: User) -> dict:
    return identity_for(user).model_dump() | {"created_at": user.created_at}

def _session_response(response: Response, service: AuthService, user: User) -> dict:
    token = service.create_access_token(user)
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        samesite="lax",
        max_age=service.settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {"access_token": token, "token_type": "bearer", "user": public_user(user)}


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, service: AuthService = Depends(get_auth_service)):
    user = service.signup(data.email, data.name, data.password)
    return {"user": public_user(user)}

@router.post("/login")
def login(data: LoginRequest, response: Response, service: AuthService = Depends(get_auth_service)):
    user = service.authenticate_user(data.email, data.password)
    return _session_response(response, service, user)

@router.post("/token")
def login_for_access_token(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: AuthService = Depends(get_auth_service),
):
    user = service.authenticate_user(form_data.username, form_data.password)
    return _session_response(response, service, user)

@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE)
    return {"message": "Logged out"}

@router.post("/password-reset/request")
def request_password_reset(data: PasswordResetRequest, service: AuthService = Depends(get_auth_service)):
    service.request_password_reset(data.email)
    # Always return success to prevent email enumeration
    return {"message": RESET_REQUESTED}

@router.post("/password-reset/confirm")
def confirm_password_reset(data: PasswordResetConfirm, service: AuthService = Depends(get_auth_service)):
    service.reset_password(data.token, data.password)
    return {"message": "Password reset successfully"}
