"""
Centralized configuration management for the Job Tracker API.
All environment variables, secrets, and configuration settings are managed here.
"""
import os
from typing import Optional, List
from pydantic import validator
from pydantic_settings import BaseSettings
from functools import lru_cache

# Development-only signing secret used when JWT_SECRET is not set.
DEFAULT_JWT_SECRET = "fallback-secret-key-for-development"


class Settings(BaseSettings):
    """Application settings with validation and type hints."""

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================
    app_name: str = "Job Tracker API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # =============================================================================
    # SECURITY SETTINGS
    # =============================================================================
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "jobtracker-api"
    jwt_audience: str = "jobtracker-app"
    access_token_expire_days: int = 7

    # bcrypt work factor
    bcrypt_rounds: int = 10

    @validator('bcrypt_rounds')
    def validate_bcrypt_rounds(cls, v):
        if not 4 <= v <= 31:
            raise ValueError('BCRYPT_ROUNDS must be between 4 and 31')
        return v

    # =============================================================================
    # DATABASE SETTINGS
    # =============================================================================
    database_url: str = "sqlite:///./job_tracker.db"
    database_echo: bool = False

    # =============================================================================
    # LOGGING SETTINGS
    # =============================================================================
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # =============================================================================
    # RATE LIMITING SETTINGS
    # =============================================================================
    auth_rate_limit_window_seconds: int = 15 * 60  # 15 minutes
    register_rate_limit: int = 3
    login_rate_limit: int = 5
    check_email_rate_limit: int = 20

    # =============================================================================
    # FILE UPLOAD SETTINGS
    # =============================================================================
    max_file_size: int = 10 * 1024 * 1024  # 10 MB
    allowed_file_extensions: List[str] = [".pdf", ".docx", ".txt"]
    upload_directory: str = "uploads"

    # =============================================================================
    # DEVELOPMENT SETTINGS
    # =============================================================================
    api_docs_enabled: bool = True
    cors_enabled: bool = True
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # =============================================================================
    # CONFIGURATION LOADING
    # =============================================================================
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.testing or self.environment.lower() == "testing"

    def get_database_url(self) -> str:
        """Get database URL with appropriate settings for environment."""
        if self.is_testing():
            return "sqlite:///:memory:"
        return self.database_url

    def uses_default_jwt_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET

    def upload_path(self, file_name: str) -> str:
        return os.path.join(self.upload_directory, file_name)

    def validate_required_settings(self) -> List[str]:
        """Validate that all required settings are properly configured."""
        missing = []

        if self.is_production():
            if self.uses_default_jwt_secret():
                missing.append("JWT_SECRET must be set in production")
            elif len(self.jwt_secret) < 32:
                missing.append("JWT_SECRET must be at least 32 characters in production")

            if self.debug:
                missing.append("DEBUG must be False in production")

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            missing.append(f"Invalid LOG_LEVEL: {self.log_level}")

        if self.access_token_expire_days <= 0:
            missing.append("ACCESS_TOKEN_EXPIRE_DAYS must be positive")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    This function is cached to avoid recreating the settings object multiple times.
    """
    return Settings()
