"""
Centralized configuration management using Pydantic Settings.

All environment variables and configuration in one place.
Type-safe with validation.
"""

from typing import Optional, Literal
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # ==================== Database Configuration ====================
    database_url: str = Field(
        default="postgresql://localhost/aether",
        description="PostgreSQL (or SQLite for local/test) connection string"
    )
    db_pool_size: int = Field(default=20, ge=1, le=100, description="Database pool size")
    db_max_overflow: int = Field(default=30, ge=0, le=200, description="Max overflow connections")
    db_pool_recycle: int = Field(default=1800, ge=300, description="Pool recycle time (seconds)")
    db_pool_pre_ping: bool = Field(default=True, description="Enable pool pre-ping")
    db_pool_timeout: int = Field(default=30, ge=1, le=120, description="Pool timeout (seconds)")
    db_echo: bool = Field(default=False, description="Echo SQL queries")
    db_auto_create: bool = Field(default=False, description="Create missing tables on startup")

    # ==================== API Configuration ====================
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=5000, ge=1024, le=65535, description="API port")
    api_reload: bool = Field(default=False, description="Enable auto-reload")
    cors_allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed to call the API from a browser"
    )

    # ==================== Monitoring & Logging ====================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # ==================== Security ====================
    secret_key: str = Field(
        ...,  # Required field - no default
        min_length=32,
        description="Secret key for JWT tokens (must be at least 32 characters)"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        ge=1,
        description="Session token expiry (minutes)"
    )
    password_min_length: int = Field(
        default=6,
        ge=1,
        le=128,
        description="Minimum password length"
    )

    # One-time codes for password reset / email change
    otp_length: int = Field(default=6, ge=4, le=10, description="Number of digits in a one-time code")
    otp_expire_minutes: int = Field(
        default=5,
        ge=1,
        le=60,
        description="One-time code expiry (minutes)"
    )

    # ==================== Email Configuration ====================
    email_enabled: bool = Field(default=False, description="Enable email sending")
    email_backend: Literal["smtp", "console"] = Field(default="smtp", description="Email backend (smtp or console)")
    email_host: str = Field(default="smtp.gmail.com", description="SMTP host")
    email_port: int = Field(default=587, ge=1, le=65535, description="SMTP port")
    email_use_tls: bool = Field(default=True, description="Use TLS for email")
    email_use_ssl: bool = Field(default=False, description="Use SSL for email")
    email_timeout: int = Field(default=10, ge=1, le=120, description="SMTP timeout (seconds)")
    email_host_user: Optional[str] = Field(default=None, description="Email account username")
    email_host_password: Optional[str] = Field(default=None, description="Email account password or app password")
    email_from_address: str = Field(
        default="noreply@aether-weather.app",
        description="Default FROM email address"
    )
    email_from_name: str = Field(
        default="Aether Weather",
        description="Default FROM name"
    )

    # ==================== Development ====================
    debug: bool = Field(default=False, description="Debug mode")
    testing: bool = Field(default=False, description="Testing mode")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure database URL is valid."""
        if not v.startswith((
            "postgresql://",
            "postgresql+asyncpg://",
            "sqlite://",
            "sqlite+aiosqlite://",
        )):
            raise ValueError("Database URL must use PostgreSQL or SQLite")
        return v

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate secret key for production use."""
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        if v in ["your-super-secret-jwt-key-minimum-32-characters-long-replace-in-production",
                 "change-me-in-production", "development-key-not-secure"]:
            raise ValueError("SECRET_KEY must be changed from default value in production")
        return v

    @property
    def async_database_url(self) -> str:
        """Get async database URL for SQLAlchemy."""
        if "asyncpg" in self.database_url or "aiosqlite" in self.database_url:
            return self.database_url
        if self.database_url.startswith("sqlite://"):
            return self.database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    @property
    def is_sqlite(self) -> bool:
        """Check whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.testing

    def validate_production_config(self) -> list[str]:
        """Get list of production configuration issues."""
        issues = []

        if not self.is_development and "localhost" in self.database_url:
            issues.append("DATABASE_URL should not use localhost in production")

        if not self.is_development and self.is_sqlite:
            issues.append("DATABASE_URL should point to PostgreSQL in production")

        if self.email_enabled and self.email_backend == "smtp" and not self.email_host_user:
            issues.append("EMAIL_HOST_USER required when SMTP email is enabled")

        return issues


# Global settings instance
settings = Settings()
