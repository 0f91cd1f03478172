"""Tests for Settings validation."""

import pytest
from pydantic import ValidationError

from catalog_api.core.config import Settings


class TestSettings:
    """Tests for the Settings model validator."""

    def test_defaults(self):
        """Defaults should be usable for local development."""
        s = Settings(_env_file=None)
        assert s.api_prefix == "/v1"
        assert s.verification_token_ttl_seconds == 60
        assert s.storage_backend == "local"

    def test_database_urls(self):
        """Async URL uses asyncpg; sync URL is plain postgresql."""
        s = Settings(_env_file=None, database_host="db", database_name="cat")
        assert s.database_url.startswith("postgresql+asyncpg://")
        assert s.database_url.endswith("@db:5432/cat")
        assert s.database_url_sync.startswith("postgresql://")

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_non_positive_ttl_rejected(self, ttl):
        """The token window must be positive."""
        with pytest.raises(ValidationError, match="TTL"):
            Settings(_env_file=None, verification_token_ttl_seconds=ttl)

    def test_s3_requires_bucket(self):
        """Selecting S3 without a bucket is a configuration error."""
        with pytest.raises(ValidationError, match="S3_BUCKET_NAME"):
            Settings(_env_file=None, storage_backend="s3")

    def test_s3_with_bucket_ok(self):
        """S3 with a bucket name validates."""
        s = Settings(_env_file=None, storage_backend="s3", s3_bucket_name="b")
        assert s.s3_bucket_name == "b"

    def test_unknown_backend_rejected(self):
        """Only local and s3 are valid backends."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, storage_backend="ftp")

    def test_default_password_rejected_in_production(self):
        """Production must not run with the development password."""
        with pytest.raises(ValidationError, match="DATABASE_PASSWORD"):
            Settings(_env_file=None, environment="production")

    def test_production_with_real_password_ok(self):
        """Production with a real password validates."""
        s = Settings(
            _env_file=None,
            environment="production",
            database_password="a-real-secret",  # nosec B106
        )
        assert s.environment == "production"
