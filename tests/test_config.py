"""
Settings and logging helper tests.
"""

import json
import logging
import pytest
from pydantic import ValidationError as PydanticValidationError

from config.settings import Settings
from utils.monitoring.logging import (
    StructuredFormatter,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)

SECRET = "a-perfectly-fine-secret-key-for-tests-42"


class TestSettings:

    def test_async_url_mapping(self):
        assert Settings(
            secret_key=SECRET, database_url="postgresql://db/aether"
        ).async_database_url == "postgresql+asyncpg://db/aether"
        assert Settings(
            secret_key=SECRET, database_url="sqlite:///./aether.db"
        ).async_database_url == "sqlite+aiosqlite:///./aether.db"

    def test_rejects_other_databases(self):
        with pytest.raises(PydanticValidationError):
            Settings(secret_key=SECRET, database_url="mysql://db/aether")

    @pytest.mark.parametrize("secret", ["short", "change-me-in-production"])
    def test_rejects_weak_secret(self, secret):
        with pytest.raises(PydanticValidationError):
            Settings(secret_key=secret)

    def test_code_defaults(self):
        config = Settings(secret_key=SECRET)
        assert config.otp_length == 6
        assert config.otp_expire_minutes == 5
        assert config.password_min_length == 6

    def test_production_issues(self):
        config = Settings(
            secret_key=SECRET,
            database_url="sqlite:///./aether.db",
            debug=False,
            testing=False,
        )
        assert any("PostgreSQL" in issue for issue in config.validate_production_config())


class TestCorrelationId:

    def test_set_and_clear(self):
        set_correlation_id("req-1")
        assert get_correlation_id() == "req-1"
        clear_correlation_id()
        generated = get_correlation_id()
        assert generated and generated != "req-1"

    def test_json_formatter_includes_correlation_id(self, monkeypatch):
        from utils.monitoring import logging as logging_module

        monkeypatch.setattr(logging_module.settings, "testing", False)
        monkeypatch.setattr(logging_module.settings, "debug", False)
        set_correlation_id("req-2")

        record = logging.LogRecord("aether", logging.INFO, __file__, 1, "hello", None, None)
        data = json.loads(StructuredFormatter().format(record))
        assert data["correlation_id"] == "req-2"
        assert data["message"] == "hello"
