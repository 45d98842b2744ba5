"""Application configuration."""

import base64
from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Key generation command for documentation (split for line length)
KEY_GEN_CMD = (
    'python -c "import secrets,base64;'
    'print(base64.urlsafe_b64encode(secrets.token_bytes(32)).decode())"'
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "HR Records & Onboarding"
    app_base_url: str = "http://localhost:3000"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # Database (required - no default for security)
    database_url: PostgresDsn = Field(
        description="PostgreSQL connection URL. Must be set via environment variable."
    )
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Security - Encryption of SSN and portal credentials
    encryption_key: str = Field(min_length=32)
    # Legacy keys for decryption during key rotation (comma-separated, oldest to newest)
    encryption_key_legacy: str = ""

    # DocuSeal e-signature provider
    docuseal_api_key: str = ""
    docuseal_base_url: str = "https://api.docuseal.co"
    docuseal_signing_url_base: str = "https://docuseal.com"
    docuseal_timeout_seconds: float = 15.0

    # HR counter-signer identity for dual-signature forms
    hr_email: str = "hr@company.com"
    hr_name: str = "HR Department"

    # Company details used to pre-fill forms
    company_name: str = ""
    company_address: str = ""
    company_ohid: str = ""

    # Object storage (S3). Empty bucket means local filesystem only.
    s3_bucket: str = ""
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    s3_connect_timeout_seconds: float = 5.0
    s3_read_timeout_seconds: float = 30.0
    signed_url_ttl_seconds: int = 3600

    # Outbound e-mail
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_from_email: str = ""
    smtp_from_name: str = "HR Onboarding"
    smtp_use_tls: bool = True
    smtp_timeout_seconds: float = 15.0

    # Onboarding lifecycle
    invitation_validity_days: int = 7
    invitation_reminder_interval_hours: int = 48
    invitation_max_reminders: int = 3

    # Form submissions
    form_expiry_days: int = 30
    form_reminder_interval_hours: int = 1

    # Scheduler
    submission_sync_interval_minutes: int = 15

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings for security requirements."""
        # Security: Prevent debug mode in production
        if self.environment == "production" and self.debug:
            raise ValueError(
                "DEBUG mode cannot be enabled in production environment. "
                "This would expose employee data in error messages."
            )

        url = str(self.database_url)
        if not url.startswith(("postgresql://", "postgres://")):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL URL starting with 'postgresql://' or 'postgres://'"
            )

        if self.environment == "production":
            try:
                padded = self.encryption_key + "=" * (-len(self.encryption_key) % 4)
                decoded_key = base64.urlsafe_b64decode(padded)
            except ValueError:
                decoded_key = b""
            if len(decoded_key) != 32:
                raise ValueError(
                    "ENCRYPTION_KEY must be a base64-encoded 32-byte key. "
                    f"Generate with: {KEY_GEN_CMD}"
                )
            if not self.hr_email or self.hr_email == "hr@company.com":
                raise ValueError("HR_EMAIL must be configured in production")

        return self

    @property
    def async_database_url(self) -> str:
        """Get async database URL for SQLAlchemy with asyncpg.

        Converts sslmode parameter to ssl for asyncpg compatibility.
        """
        url = str(self.database_url)
        url = url.replace("postgresql://", "postgresql+asyncpg://")
        url = url.replace("sslmode=", "ssl=")
        return url

    @property
    def docuseal_configured(self) -> bool:
        """Whether the DocuSeal API key is present."""
        return bool(self.docuseal_api_key)

    @property
    def s3_configured(self) -> bool:
        """Whether an S3 bucket is configured."""
        return bool(self.s3_bucket)

    @property
    def smtp_configured(self) -> bool:
        """Whether outbound SMTP is configured."""
        return bool(self.smtp_host and self.smtp_from_email)

    @property
    def encryption_key_legacy_list(self) -> list[str]:
        """Get legacy encryption keys as a list."""
        return [key.strip() for key in self.encryption_key_legacy.split(",") if key.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
