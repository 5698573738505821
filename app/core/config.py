"""
Configuration management for the HR management backend
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Required settings
    DATABASE_URL: str = Field(..., description="Database URL (PostgreSQL or SQLite)")
    JWT_ACCESS_SECRET: str = Field(..., description="Secret for signing access tokens")
    JWT_REFRESH_SECRET: str = Field(..., description="Secret for signing refresh tokens")

    # Optional settings with defaults
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=15, ge=1, description="Access token lifetime in minutes")
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default=30, ge=1, description="Refresh token lifetime in days")
    REFRESH_ROTATION_REVOKE_ALL: bool = Field(
        default=False,
        description="If True, a successful refresh revokes every other session of the user, not only the token used",
    )

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    # Refresh token cookie
    REFRESH_COOKIE_NAME: str = Field(default="refresh_token", description="Cookie carrying the refresh token")
    COOKIE_SECURE: bool = Field(default=False, description="Send refresh cookie over HTTPS only")
    COOKIE_SAMESITE: str = Field(default="lax", description="SameSite policy: lax, strict, none")
    COOKIE_DOMAIN: Optional[str] = Field(default=None, description="Domain for the refresh cookie")

    # Pagination
    DEFAULT_PAGE_SIZE: int = Field(default=20, ge=1)
    MAX_PAGE_SIZE: int = Field(default=100, ge=1)

    # Version (can be git SHA or semver)
    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    # Initial admin bootstrap settings
    INITIAL_ADMIN_EMAIL: str = Field(
        default="admin@hrmanagement.com",
        description="Email for the initial super admin (used when no super admin exists)"
    )
    INITIAL_ADMIN_PASSWORD: str = Field(
        default="Admin@12345",
        description="Password for the initial super admin (used when no super admin exists)"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate APP_ENV"""
        allowed = ["local", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    @field_validator("COOKIE_SAMESITE")
    @classmethod
    def validate_cookie_samesite(cls, v: str) -> str:
        allowed = ["lax", "strict", "none"]
        if v.lower() not in allowed:
            raise ValueError(f"COOKIE_SAMESITE must be one of {allowed}")
        return v.lower()

    def validate_production(self) -> None:
        """
        Validate settings for production environment

        Raises:
            ValueError: If production settings are invalid
        """
        if self.APP_ENV == "prod":
            for name in ("JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET"):
                if len(getattr(self, name)) < 32:
                    raise ValueError(
                        f"{name} must be at least 32 characters in production environment"
                    )

            # A leaked access token must not verify as a refresh token
            if self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
                raise ValueError(
                    "JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ in production environment"
                )

            # ALLOWED_ORIGINS must not be wildcard in production
            if self.ALLOWED_ORIGINS == "*" or not self.ALLOWED_ORIGINS:
                raise ValueError(
                    "ALLOWED_ORIGINS must be explicitly set (not '*') in production environment"
                )

            if not self.COOKIE_SECURE:
                raise ValueError("COOKIE_SECURE must be enabled in production environment")

    def get_allowed_origins_list(self) -> List[str]:
        """
        Get list of allowed CORS origins

        Returns:
            List of allowed origins (or ['*'] for local)
        """
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "prod"


# Create settings instance
settings = Settings()

# Validate production settings if in prod
if settings.APP_ENV == "prod":
    settings.validate_production()
