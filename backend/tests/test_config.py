"""Settings validation tests."""

import base64

import pydantic
import pytest

from hrms_api.config import Settings

DB_URL = "postgresql://hr:hr@localhost:5432/hrms"
KEY = base64.urlsafe_b64encode(b"k" * 32).decode()


def make(**overrides) -> Settings:
    values = {"database_url": DB_URL, "encryption_key": KEY, "_env_file": None}
    values.update(overrides)
    return Settings(**values)


class TestSettings:
    def test_defaults(self) -> None:
        settings = make()

        assert settings.environment == "development"
        assert settings.docuseal_configured is False
        assert settings.smtp_configured is False
        assert settings.s3_configured is False
        assert settings.invitation_validity_days == 7

    def test_async_url(self) -> None:
        settings = make(database_url="postgresql://hr:hr@db:5432/hrms?sslmode=require")
        assert settings.async_database_url == "postgresql+asyncpg://hr:hr@db:5432/hrms?ssl=require"

    def test_legacy_keys(self) -> None:
        assert make(encryption_key_legacy=" a , ,b ").encryption_key_legacy_list == ["a", "b"]

    def test_debug_forbidden_in_production(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="DEBUG mode"):
            make(environment="production", debug=True, hr_email="hr@acme.com")

    def test_production_requires_hr_email(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="HR_EMAIL"):
            make(environment="production")

    def test_production_requires_real_key(self) -> None:
        with pytest.raises(pydantic.ValidationError, match="ENCRYPTION_KEY"):
            make(environment="production", encryption_key="x" * 40, hr_email="hr@acme.com")

    def test_production_ok(self) -> None:
        assert make(environment="production", hr_email="hr@acme.com").environment == "production"

    def test_database_url_required(self, monkeypatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(pydantic.ValidationError):
            Settings(encryption_key=KEY, _env_file=None)
