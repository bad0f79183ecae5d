"""
Tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from app.core.config import DEFAULT_SECRET_KEY, Settings


class TestSecretKey:
    def test_default_rejected_in_production(self):
        with pytest.raises(ValidationError, match="SECRET_KEY must be set in production"):
            Settings(_env_file=None, python_env="production", secret_key=DEFAULT_SECRET_KEY)

    def test_custom_secret_accepted_in_production(self):
        config = Settings(_env_file=None, python_env="production", secret_key="a-real-secret")
        assert config.is_production is True

    def test_default_allowed_in_development(self):
        config = Settings(_env_file=None, python_env="development", secret_key=DEFAULT_SECRET_KEY)
        assert config.secret_key == DEFAULT_SECRET_KEY


class TestCorsOrigins:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("http://a.dev, http://b.dev", ["http://a.dev", "http://b.dev"]),
            ('["http://a.dev"]', ["http://a.dev"]),
            ("", []),
        ],
    )
    def test_parsing(self, raw, expected):
        config = Settings(_env_file=None, cors_origins=raw)
        assert config.cors_origins_list == expected
