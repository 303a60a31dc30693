import hashlib
import re
from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from app.core.config import Settings
from app.core.timeutils import utcnow

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

PASSWORD_RULES = [
    (re.compile(r".{8,}", re.S), "Password must be at least 8 characters"),
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[!@#$%^&*]"), "Password must contain at least one special character (!@#$%^&*)"),
]


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def validate_password_strength(password: str) -> str:
    """Pydantic-friendly check: returns the password or raises ValueError."""
    for pattern, message in PASSWORD_RULES:
        if not pattern.search(password):
            raise ValueError(message)
    return password


class Identity(BaseModel):
    id: int
    email: str
    name: str
    role: str


class ResetClaims(BaseModel):
    user_id: int
    fingerprint: str


def password_fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


class SessionCredentials:
    """Issues and verifies the bearer credential used for every API call."""

    AUDIENCE = "inkwell:session"

    def __init__(self, settings: Settings):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def issue(self, identity: Identity, expires_delta: Optional[timedelta] = None) -> str:
        now = utcnow()
        claims = {
            "sub": str(identity.id),
            "email": identity.email,
            "name": identity.name,
            "role": identity.role,
            "aud": self.AUDIENCE,
            "iat": now,
            "exp": now + (expires_delta or self.expires),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[Identity]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm], audience=self.AUDIENCE)
            return Identity(
                id=int(payload["sub"]),
                email=payload["email"],
                name=payload["name"],
                role=payload["role"],
            )
        except (JWTError, KeyError, ValueError, TypeError):
            return None


class ResetCredentials:
    """Short-lived, single-purpose credential that can only reset a password.

    It is signed with a different key and audience than session credentials
    and carries no identity claims, so neither kind verifies as the other. The
    fingerprint of the password hash it was issued against makes it unusable
    once that password has been replaced.
    """

    AUDIENCE = "inkwell:password-reset"

    def __init__(self, settings: Settings):
        self.secret_key = settings.RESET_SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.expires = timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)

    def issue(self, user_id: int, password_hash: str, expires_delta: Optional[timedelta] = None) -> str:
        now = utcnow()
        claims = {
            "sub": str(user_id),
            "pwd": password_fingerprint(password_hash),
            "aud": self.AUDIENCE,
            "iat": now,
            "exp": now + (expires_delta or self.expires),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[ResetClaims]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm], audience=self.AUDIENCE)
            return ResetClaims(user_id=int(payload["sub"]), fingerprint=payload["pwd"])
        except (JWTError, KeyError, ValueError, TypeError):
            return None
