from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    PROJECT_NAME: str = "Inkwell API"
    DATABASE_URL: str = "sqlite:///./inkwell.db"
    SQL_ECHO: bool = False

    # Session credentials
    SECRET_KEY: str = "supersecretkey_change_me_in_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7 # 1 week

    # Password reset credentials use their own key so they can never verify as a session
    RESET_SECRET_KEY: str = "resetsecretkey_change_me_in_production"
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    PASSWORD_HISTORY_LIMIT: int = 5

    # Audit trail of mutations (best-effort)
    ENABLE_AUDIT_LOGGING: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    CORS_ORIGINS: List[str] = ["*"]
    FRONTEND_URL: str = "http://localhost:3000"

    # Mail (mapped from .env)
    MAIL_ENABLED: bool = False
    MAIL_USERNAME: str = Field("no-reply@inkwell.local", validation_alias="MAIL_USERNAME")
    MAIL_PASSWORD: str = Field("", validation_alias="APP_PASSWORD")
    MAIL_FROM: str = Field("no-reply@inkwell.local", validation_alias="MAIL_FROM")
    MAIL_PORT: int = Field(465, validation_alias="MAIL_PORT")
    MAIL_SERVER: str = Field("localhost", validation_alias="MAIL_SERVER")
    MAIL_SSL: bool = Field(True, validation_alias="MAIL_SSL")

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
