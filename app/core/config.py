from pathlib import Path
from typing import List, Optional

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Careers Mailer"
    VERSION: str = "1.0.0"

    # --- Environment & Debug ---
    ENVIRONMENT: str = "local"
    DEBUG: bool = False  # Default to False for security
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None  # Console only unless set

    # --- Server ---
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # --- Mail relay ---
    EMAIL_USER: Optional[str] = None  # Service mailbox: sender and recipient
    EMAIL_PASS: Optional[SecretStr] = None  # Loaded from .env or environment variables
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_TIMEOUT: float = 30.0

    # --- Uploads ---
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 6 * 1024 * 1024  # 6MB

    # --- CORS ---
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="List of allowed CORS origins. Configure in .env",
    )

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def default_allowed_origins(
        cls, v: Optional[List[str]], info: ValidationInfo
    ) -> Optional[List[str]]:
        if v is None:
            return ["*"]
        if isinstance(v, str) and v.strip() in ("", "[]"):
            return ["*"]
        if isinstance(v, list) and len(v) == 0:
            return ["*"]
        return v

    @field_validator("MAX_UPLOAD_BYTES")
    @classmethod
    def validate_max_upload_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("MAX_UPLOAD_BYTES must be positive")
        return v

    @property
    def upload_path(self) -> Path:
        return Path(self.UPLOAD_DIR)


settings = Settings()
