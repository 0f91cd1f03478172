"""Application configuration loaded from environment variables.

Settings for database, HTTP surface, password hashing, the verification
token window, metrics, and the storage / notification backends. Uses
pydantic-settings for validation and .env file support.
"""

from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "catalog_dev_password"  # nosec B105


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "catalog"
    database_user: str = "catalog_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000
    api_prefix: str = "/v1"

    # Externally reachable base URL, used to build verification links
    public_base_url: str = "http://localhost:8000"

    # Application
    app_name: str = "catalog-api"
    environment: str = "development"
    log_level: str = "INFO"

    # Metrics (StatsD timers, DogStatsD tag format)
    metrics_enabled: bool = True
    statsd_host: str = "localhost"
    statsd_port: int = 8125

    # Credentials
    bcrypt_rounds: int = 12

    # Email verification
    # The observed deployment used a 60 second window; keep it tunable.
    verification_token_ttl_seconds: int = 60

    # Uploads
    max_upload_size_mb: int = 10

    # Storage backend, chosen once at startup
    storage_backend: Literal["local", "s3"] = "local"
    storage_local_root: Path = Path("./uploads")

    # AWS (S3 object store + SNS verification topic)
    aws_region: str = "us-east-1"
    s3_bucket_name: str = ""
    s3_endpoint_url: str = ""
    sns_topic_arn: str = ""
    aws_connect_timeout: float = 5.0
    aws_read_timeout: float = 30.0
    aws_max_attempts: int = 3

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Sync database URL for Alembic."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - Verification token window must be positive (all environments)
        - S3 storage requires a bucket name (all environments)
        - Database password must not be the default in production
        """
        if self.verification_token_ttl_seconds <= 0:
            msg = (
                "VERIFICATION_TOKEN_TTL_SECONDS must be positive. "
                f"Got: {self.verification_token_ttl_seconds}"
            )
            raise ValueError(msg)

        if self.storage_backend == "s3" and not self.s3_bucket_name:
            msg = "S3_BUCKET_NAME must be set when STORAGE_BACKEND=s3."
            raise ValueError(msg)

        if (
            self.environment == "production"
            and self.database_password == _INSECURE_DEFAULT_PASSWORD
        ):
            msg = (
                "Cannot use default database password in production. "
                "Set DATABASE_PASSWORD environment variable to a secure value."
            )
            raise ValueError(msg)

        return self


settings = Settings()
