"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py is at: backend/ubiquitous/core/config.py
_current_file = Path(__file__).resolve()
_backend_dir = _current_file.parent.parent.parent
_project_root = _backend_dir.parent
ENV_FILE = _project_root / ".env"
# Fallback: try in backend/ directory if not found in project root
if not ENV_FILE.exists():
    ENV_FILE = _backend_dir / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Ubiquitous Language System"
    app_env: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")
    allowed_origins: str = Field(
        default="http://localhost:8000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Acting user
    default_user_id: str = Field(
        default="system",
        description="User recorded on writes when no X-User-Id header is sent"
    )
    require_user_header: bool = Field(
        default=False,
        description="Reject write requests that carry no X-User-Id header"
    )

    # Logging
    log_sqlalchemy: bool = Field(default=False, description="Enable SQLAlchemy query logging")
    log_uvicorn_access: bool = Field(default=False, description="Enable Uvicorn access logging")
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"ubiquitous.services": "DEBUG"})'
    )
    log_format: str = Field(
        default="json",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_file_enabled: bool = Field(default=True, description="Enable file logging")
    log_file_path: str = Field(
        default="logs/ubiquitous.log",
        description="Path to log file (relative to project root)"
    )
    log_file_rotation: str = Field(
        default="midnight",
        description="Log file rotation: 'midnight' or 'W0'..'W6' (weekly)"
    )
    log_file_retention: int = Field(
        default=30,
        ge=1,
        description="Number of days to keep log files"
    )
    log_sensitive_data: bool = Field(
        default=False,
        description="Enable logging of sensitive data (passwords, tokens) - NOT RECOMMENDED"
    )

    # Database
    database_url_override: Optional[str] = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Full SQLAlchemy URL, takes precedence over POSTGRES_* settings"
    )
    postgres_host: str = Field(default="localhost", description="PostgreSQL host")
    postgres_db: str = Field(default="ubiquitous", description="PostgreSQL database name")
    postgres_user: str = Field(default="ubiquitous", description="PostgreSQL user")
    postgres_password: str = Field(default="ubiquitous", description="PostgreSQL password")
    postgres_port: int = Field(default=5432, ge=1, le=65535, description="PostgreSQL port")
    database_pool_size: int = Field(default=20, ge=1, description="Database pool size")
    database_max_overflow: int = Field(default=10, ge=0, description="Database max overflow")

    # Search
    meilisearch_host: Optional[str] = Field(
        default=None,
        description="MeiliSearch URL; database search is used when unset"
    )
    meilisearch_api_key: Optional[str] = Field(default=None, description="MeiliSearch API key")
    meilisearch_index: str = Field(default="terms", description="MeiliSearch index for terms")
    search_timeout_seconds: float = Field(default=5.0, gt=0, description="Search request timeout")

    # LLM assistant
    ollama_url: Optional[str] = Field(
        default=None,
        description="Ollama API URL; AI assistant endpoints are disabled when unset"
    )
    ollama_model: str = Field(default="llama3", description="Ollama model name")
    llm_timeout_seconds: int = Field(
        default=30,
        ge=5,
        le=300,
        description="Maximum time to wait for an LLM response (seconds)"
    )
    llm_temperature: float = Field(default=0.3, ge=0.0, le=1.0, description="LLM temperature")
    llm_top_p: float = Field(default=0.8, ge=0.0, le=1.0, description="LLM top-p")
    llm_num_ctx: int = Field(default=2048, ge=512, le=8192, description="LLM context size")
    llm_max_retries: int = Field(default=3, ge=1, le=10, description="LLM retries on timeout")
    llm_cache_ttl_hours: int = Field(default=24, ge=0, description="LLM response cache TTL (hours)")

    # Reviews
    review_reminder_days: int = Field(
        default=7,
        ge=0,
        description="Terms due within this many days get an upcoming-review reminder"
    )

    @field_validator("ollama_url", "meilisearch_host", mode="before")
    @classmethod
    def strip_url(cls, v):
        """Normalize service URLs, treating blank values as unset"""
        if isinstance(v, str):
            v = v.strip().rstrip("/")
            return v or None
        return v

    @property
    def database_url(self) -> str:
        """Construct database URL"""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def llm_enabled(self) -> bool:
        return bool(self.ollama_url)

    @property
    def meilisearch_enabled(self) -> bool:
        return bool(self.meilisearch_host)

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
