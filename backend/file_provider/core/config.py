"""
Configuration Management
========================
Loads and validates environment variables using Pydantic Settings.
Provides type-safe access to storage configuration throughout the package.

Enhanced features:
- Storage backend selection (DISK / BUCKET)
- Bucket credential validation
- Secret masking
- Safe export for debugging
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Dict, Any

from pydantic import AliasChoices, Field, field_validator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageType(str, Enum):
    """Storage backend selector"""
    DISK = "DISK"
    BUCKET = "BUCKET"


class Settings(BaseSettings):
    """
    Application Settings

    All settings are loaded from environment variables or .env file.
    Pydantic validates types and required fields automatically.
    """

    # ========================================================================
    # APPLICATION
    # ========================================================================
    APP_NAME: str = "File Provider"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Public base URL used to build disk-mode file links
    HOST_URL: str = Field(default="http://localhost:8000")

    # ========================================================================
    # STORAGE
    # ========================================================================
    STORAGE_TYPE: StorageType = Field(default=StorageType.DISK)
    STORAGE_PATH: str = Field(
        default="storage",
        validation_alias=AliasChoices("STORAGE_PATH", "DISK_STORAGE_PATH"),
    )
    STORAGE_TEMP_DIR: str = Field(default="temp")
    TEMP_FILE_MAX_AGE_SECONDS: int = Field(default=300, ge=0)

    # ========================================================================
    # OBJECT STORAGE (S3-compatible)
    # ========================================================================
    BUCKET_NAME: Optional[str] = Field(default=None)
    BUCKET_ENDPOINT_URL: Optional[str] = Field(default=None)
    BUCKET_REGION: str = Field(default="auto")
    BUCKET_ACCESS_KEY_ID: Optional[str] = Field(default=None)
    BUCKET_SECRET_ACCESS_KEY: Optional[str] = Field(default=None)

    # Presigned URL lifetimes (seconds)
    PRESIGN_EXPIRES_IN: int = Field(default=60, ge=1)
    BATCH_PRESIGN_SECONDS_PER_ITEM: int = Field(default=5, ge=1)
    BATCH_PRESIGN_MAX_SECONDS: int = Field(default=60, ge=1)

    # ========================================================================
    # IMAGES
    # ========================================================================
    MAX_IMAGE_SIZE_KB: int = Field(default=500, ge=1)

    @field_validator("STORAGE_TYPE", mode="before")
    def normalize_storage_type(cls, v):
        """Accept lower-case backend names"""
        if isinstance(v, str):
            return v.upper()
        return v

    # ========================================================================
    # PYDANTIC CONFIGURATION
    # ========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore"  # Ignore extra fields in .env
    )

    # ========================================================================
    # COMPUTED PROPERTIES
    # ========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def storage_root(self) -> Path:
        """Absolute root directory for disk storage"""
        return Path(self.STORAGE_PATH).resolve()

    @property
    def temp_path(self) -> Path:
        """Directory holding temporary uploads"""
        return self.storage_root / self.STORAGE_TEMP_DIR

    @computed_field
    @property
    def bucket_configured(self) -> bool:
        """Check if the object store is fully configured"""
        return all([
            self.BUCKET_NAME,
            self.BUCKET_ACCESS_KEY_ID,
            self.BUCKET_SECRET_ACCESS_KEY,
        ])

    # ========================================================================
    # VALIDATION METHODS
    # ========================================================================

    def validate_required_for_production(self) -> List[str]:
        """
        Validate that all required settings for production are configured

        Returns:
            List[str]: List of missing required settings
        """
        if not self.is_production:
            return []

        missing = []

        if self.STORAGE_TYPE == StorageType.BUCKET and not self.bucket_configured:
            missing.append(
                "BUCKET_NAME, BUCKET_ACCESS_KEY_ID and BUCKET_SECRET_ACCESS_KEY "
                "must be set when STORAGE_TYPE is BUCKET"
            )

        if "localhost" in self.HOST_URL:
            missing.append("Production should not use a localhost HOST_URL")

        return missing

    def mask_secret(self, secret: Optional[str], show_chars: int = 4) -> str:
        """
        Mask a secret for safe logging

        Args:
            secret: The secret to mask
            show_chars: Number of characters to show at the start

        Returns:
            str: Masked secret
        """
        if not secret:
            return "NOT_SET"

        if len(secret) <= show_chars:
            return "*" * len(secret)

        return secret[:show_chars] + "*" * (len(secret) - show_chars)

    def to_safe_dict(self) -> Dict[str, Any]:
        """
        Export configuration as dictionary with secrets masked

        Returns:
            Dict[str, Any]: Safe configuration dictionary
        """
        config = self.model_dump()

        sensitive_fields = [
            "BUCKET_ACCESS_KEY_ID",
            "BUCKET_SECRET_ACCESS_KEY",
        ]

        for field in sensitive_fields:
            if field in config:
                config[field] = self.mask_secret(config[field])

        return config

    def get_storage_config(self) -> Dict[str, Any]:
        """
        Get storage configuration

        Returns:
            Dict[str, Any]: Storage configuration
        """
        return {
            "type": self.STORAGE_TYPE.value,
            "disk": {
                "root": str(self.storage_root),
                "temp": str(self.temp_path),
                "temp_max_age_seconds": self.TEMP_FILE_MAX_AGE_SECONDS,
            },
            "bucket": {
                "configured": self.bucket_configured,
                "name": self.BUCKET_NAME,
                "endpoint": self.BUCKET_ENDPOINT_URL,
                "region": self.BUCKET_REGION,
                "presign_expires_in": self.PRESIGN_EXPIRES_IN,
            },
        }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance

    Uses lru_cache to ensure settings are loaded only once.

    Returns:
        Settings: Validated settings instance
    """
    return Settings()


# Convenience: Create a global settings instance
settings = get_settings()


# ============================================================================
# CONFIGURATION VALIDATION ON IMPORT
# ============================================================================

def validate_configuration():
    """
    Validate configuration on module import

    Raises:
        ValueError: If production configuration is invalid
    """
    if settings.is_production:
        missing = settings.validate_required_for_production()
        if missing:
            error_msg = "Production configuration validation failed:\n" + "\n".join(f"  - {m}" for m in missing)
            raise ValueError(error_msg)


validate_configuration()
