"""
SOP Gateway: Application Configuration
=======================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a module-level `settings` object.
Who:   Imported by main.py, the connection check command and the tests.
When:  Loaded once at import time; required keys are checked at startup
       (see `missing_required`), not at import, so tests can build partial
       settings objects freely.

Required keys:
    SUPABASE_URL, SUPABASE_KEY, TABLE_NAME   (record store)
    AWS_REGION, S3_BUCKET_NAME               (object store)

AWS credentials are optional: when absent, boto3 falls back to its standard
credential chain (instance profile, shared config, ...).
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PRODUCTION = "production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field has a default so that the object can always be constructed;
    the required ones default to "" and are reported by `missing_required()`.
    """

    # ── Record store (Supabase / PostgREST) ───────────────────────────────
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_key: str = Field(default="", description="Supabase API key")
    table_name: str = Field(default="", description="Table holding the SOP records")

    # Upper bound for a single PostgREST request, handed to the HTTP transport
    store_timeout_seconds: int = Field(default=10, ge=1, le=120)

    # ── Object store (S3) ─────────────────────────────────────────────────
    aws_region: str = Field(default="")
    aws_access_key_id: str = Field(default="")
    aws_secret_access_key: str = Field(default="")
    s3_bucket_name: str = Field(default="")

    # S3-compatible providers (MinIO, R2, ...) expose a custom endpoint
    aws_s3_endpoint_url: str = Field(default="")

    signer_timeout_seconds: int = Field(default=5, ge=1, le=60)

    # Signed links are valid for 24 hours
    signed_url_ttl_seconds: int = Field(default=86_400, ge=60, le=604_800)

    # ── Records ───────────────────────────────────────────────────────────
    # Field carrying the asset reference, and the field added by enrichment
    asset_field: str = Field(default="audio_url")
    signed_asset_field: str = Field(default="signed_audio_url")

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    environment: str = Field(default="development")

    # Comma-separated; only consulted in production (see cors_origins_list)
    allowed_origins: str = Field(default="")

    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, v: str) -> str:
        return v.strip().lower() or "development"

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Origins handed to CORSMiddleware.

        Production: the comma-separated ALLOWED_ORIGINS entries.
        Anything else: every origin ("*").
        """
        if not self.is_production:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def missing_required(self) -> List[str]:
        """
        What:  Names of the required environment variables that are unset.
        When:  Called by main.run() and the app lifespan before serving.
        """
        required = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_KEY": self.supabase_key,
            "TABLE_NAME": self.table_name,
            "AWS_REGION": self.aws_region,
            "S3_BUCKET_NAME": self.s3_bucket_name,
        }
        return [name for name, value in required.items() if not value.strip()]


settings = Settings()
