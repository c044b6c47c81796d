"""Configuration settings using Pydantic BaseSettings."""

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Authentication Configuration
    jwt_secret: str = Field(..., min_length=1, description="Secret used to sign bearer tokens")
    jwt_algorithm: str = Field(default="HS256", description="Token signing algorithm")
    jwt_expires_minutes: int = Field(default=7 * 24 * 60, gt=0, description="Token lifetime in minutes")

    # Storage Configuration
    database_path: Path = Field(default=Path("data/taskhub.db"), description="SQLite database file")

    # Application Configuration
    environment: str = Field(default="development", description="Deployment environment name")
    app_host: str = Field(default="0.0.0.0", description="FastAPI host")
    app_port: int = Field(default=3000, description="FastAPI port")
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Log file path")

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_development(self) -> bool:
        """Whether internal error details may be exposed to clients."""
        return self.environment.lower() == "development"
