from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, computed_field

# Load .env file from project root
load_dotenv()


class Settings(BaseSettings):
    """Base settings for the application."""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "Warranty Manager API"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "Product warranty tracking, documents, reminders and administration"
    APP_AUTHOR: str = "Warranty Manager Development Team"

    DATABASE_URL: str = ""
    LOCAL_SQLITE_PATH: str = "sqlite+aiosqlite:///./local.db"

    POSTGRES_DATABASE_NAME: str = "postgres"
    POSTGRES_DATABASE_USER: str = "postgres"
    POSTGRES_DATABASE_PASSWORD: str = ""
    POSTGRES_DATABASE_HOST: str = ""
    POSTGRES_DATABASE_PORT: int = 5432

    # Local JWT auth
    LOCAL_AUTH_SECRET: str = "JWT_SECRET_KEY"
    LOCAL_AUTH_TOKEN_EXP_SECONDS: int = 86400
    BCRYPT_ROUNDS: int = 12

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE_BYTES: int = 5 * 1024 * 1024
    MAX_DOCUMENTS_PER_UPLOAD: int = 5
    ALLOWED_UPLOAD_MIME_TYPES: List[str] = Field(
        default=[
            "application/pdf",
            "image/jpeg",
            "image/png",
            "image/gif",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        ],
        description="MIME types accepted for warranty documents and images",
    )
    ALLOWED_UPLOAD_EXTENSIONS: List[str] = Field(
        default=[".pdf", ".jpg", ".jpeg", ".png", ".gif", ".doc", ".docx"],
    )

    # Pagination. Resource listings and the audit log keep separate defaults.
    DEFAULT_PAGE_SIZE: int = 10
    AUDIT_LOG_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Seeding (opt-in, see warranty_api.db.seed)
    SEED_DEFAULT_USERS: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOGS_DIR: str = "logs"

    CORS_ORIGINS: List[str] = Field(default=["*"])

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """Resolve the database URL for the application.

        Priority:
        1. Explicit DATABASE_URL (Postgres, SQLite, etc.)
        2. Postgres URL built from POSTGRES_* components
        3. Local SQLite fallback for development: LOCAL_SQLITE_PATH
        """
        if self.DATABASE_URL and self.DATABASE_URL.strip():
            return self.DATABASE_URL.strip()
        if self.POSTGRES_DATABASE_HOST.strip() and self.POSTGRES_DATABASE_PASSWORD.strip():
            return (
                f"postgresql://{self.POSTGRES_DATABASE_USER}:{self.POSTGRES_DATABASE_PASSWORD}@"
                f"{self.POSTGRES_DATABASE_HOST}:{self.POSTGRES_DATABASE_PORT}/{self.POSTGRES_DATABASE_NAME}"
            )
        if self.LOCAL_SQLITE_PATH and self.LOCAL_SQLITE_PATH.strip():
            return self.LOCAL_SQLITE_PATH.strip()
        return "sqlite+aiosqlite:///./local.db"


settings = Settings()
