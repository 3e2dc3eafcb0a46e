"""Tests for configuration classes."""

import logging
import os
from dataclasses import FrozenInstanceError
from unittest.mock import patch

import pytest


class TestCORSConfig:
    """Tests for CORSConfig class."""

    def test_cors_default_origins(self):
        """Test the default allowed origin."""
        with patch.dict(os.environ, {}, clear=True):
            from config import CORSConfig

            config = CORSConfig()

            assert config.allowed_origins == ["http://localhost:3000"]
            assert config.allow_credentials is True
            assert "*" in config.allow_methods

    def test_cors_parses_env_var_with_whitespace(self):
        """Test that CORS origins are split and stripped."""
        with patch.dict(os.environ, {"CORS_ORIGINS": "  http://example.com , http://app.test ,"}):
            from config import _parse_cors_origins

            assert _parse_cors_origins() == ["http://example.com", "http://app.test"]


class TestRateLimitConfig:
    """Tests for RateLimitConfig class."""

    def test_rate_limit_defaults(self):
        """Test default rate limit values."""
        with patch.dict(os.environ, {}, clear=True):
            from config import RateLimitConfig

            config = RateLimitConfig()

            assert config.enabled is True
            assert config.requests_per_minute == 120

    def test_rate_limit_from_env(self):
        """Test rate limit configuration from environment."""
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": "FALSE", "RATE_LIMIT_RPM": "30"}):
            from config import RateLimitConfig

            config = RateLimitConfig()

            assert config.enabled is False
            assert config.requests_per_minute == 30

    @pytest.mark.parametrize("value", ["false", "0", "no", "off"])
    def test_only_true_enables(self, value):
        """Only "true" (case insensitive) turns limiting on."""
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": value}):
            from config import RateLimitConfig

            assert RateLimitConfig().enabled is False


class TestSecurityConfig:
    """Tests for SecurityConfig class."""

    def test_secret_key_auto_generates(self):
        """Test that a secret key is generated when not in env."""
        with patch.dict(os.environ, {}, clear=True):
            from config import SecurityConfig

            first, second = SecurityConfig(), SecurityConfig()

            assert len(first.secret_key) > 0
            assert first.secret_key != second.secret_key
            assert first.token_max_age == 7 * 24 * 3600

    def test_security_from_env(self):
        """Test secret key and token lifetime from environment."""
        with patch.dict(os.environ, {"SECRET_KEY": "my-key", "TOKEN_MAX_AGE": "60"}):
            from config import SecurityConfig

            config = SecurityConfig()

            assert config.secret_key == "my-key"
            assert config.token_max_age == 60


class TestRedisConfig:
    """Tests for RedisConfig class."""

    def test_redis_defaults(self):
        """Test default Redis configuration."""
        with patch.dict(os.environ, {}, clear=True):
            from config import RedisConfig

            config = RedisConfig()

            assert config.host == "localhost"
            assert config.port == 6379
            assert config.password is None
            assert config.url == "redis://localhost:6379/0"

    def test_redis_url_with_password(self):
        """Test Redis URL generation with password."""
        with patch.dict(
            os.environ,
            {"REDIS_HOST": "redis.example.com", "REDIS_DB": "2", "REDIS_PASSWORD": "mypass"},
        ):
            from config import RedisConfig

            assert RedisConfig().url == "redis://:mypass@redis.example.com:6379/2"


class TestStoreConfig:
    """Tests for StoreConfig class."""

    def test_store_defaults(self):
        """Test that the in-memory backend is the default."""
        with patch.dict(os.environ, {}, clear=True):
            from config import StoreConfig

            config = StoreConfig()

            assert config.backend == "memory"
            assert config.lock_timeout == 5.0
            assert config.history_limit == 50

    def test_store_from_env(self):
        """Test backend selection from environment."""
        with patch.dict(os.environ, {"SESSION_BACKEND": "Redis", "LOCK_TIMEOUT": "0.5"}):
            from config import StoreConfig

            config = StoreConfig()

            assert config.backend == "redis"
            assert config.lock_timeout == 0.5


class TestGameConfig:
    """Tests for GameConfig class."""

    def test_game_config_defaults(self):
        """Test default game configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            from config import GameConfig

            config = GameConfig()

            assert config.min_bet == 1
            assert config.max_bet == 1_000_000
            assert config.dealer_stands_on == 17
            assert config.blackjack_payout == 1.5
            assert config.starting_points == 1000

    def test_game_config_frozen(self):
        """Test that GameConfig is frozen (immutable)."""
        from config import GameConfig

        config = GameConfig()

        with pytest.raises(FrozenInstanceError):
            config.max_bet = 5


class TestAppConfig:
    """Tests for AppConfig class."""

    def test_app_config_defaults(self):
        """Test default AppConfig values."""
        with patch.dict(os.environ, {}, clear=True):
            from config import AppConfig

            config = AppConfig()

            assert config.debug is False
            assert config.host == "0.0.0.0"
            assert config.port == 8000
            assert config.log_level == "INFO"

    def test_app_config_from_env(self):
        """Test debug mode and log level from environment."""
        with patch.dict(os.environ, {"DEBUG": "true", "LOG_LEVEL": "debug"}):
            from config import AppConfig

            config = AppConfig()

            assert config.debug is True
            assert config.log_level == "DEBUG"


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_installs_one_handler(self):
        """Repeated calls do not stack handlers."""
        from config import configure_logging

        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging("WARNING")
            configure_logging("DEBUG")

            ours = [h for h in root.handlers if getattr(h, "_blackjack_handler", False)]
            assert len(ours) == 1
            assert root.level == logging.DEBUG
        finally:
            for h in [h for h in root.handlers if getattr(h, "_blackjack_handler", False)]:
                root.removeHandler(h)
            root.setLevel(previous)
