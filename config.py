"""Configuration management with environment variable support."""

import logging
import os
import secrets
import sys
from dataclasses import dataclass, field
from typing import Literal


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_flag(name: str, default: bool) -> bool:
    """True only for the string "true", in any case."""
    return os.getenv(name, "true" if default else "false").lower() == "true"


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS, a comma separated list."""
    raw = _env_str("CORS_ORIGINS", "http://localhost:3000")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class CORSConfig:
    """Origins allowed to call the API from a browser."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-client request limits (slowapi)."""

    enabled: bool = field(default_factory=lambda: _env_flag("RATE_LIMIT_ENABLED", True))
    requests_per_minute: int = field(default_factory=lambda: _env_int("RATE_LIMIT_RPM", 120))


@dataclass(frozen=True)
class SecurityConfig:
    """Bearer token signing."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY") or secrets.token_urlsafe(32)
    )
    # Seconds a token stays valid
    token_max_age: int = field(
        default_factory=lambda: _env_int("TOKEN_MAX_AGE", 7 * 24 * 3600)
    )


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection settings for the redis store backend."""

    host: str = field(default_factory=lambda: _env_str("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: _env_int("REDIS_PORT", 6379))
    db: int = field(default_factory=lambda: _env_int("REDIS_DB", 0))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Connection URL for redis.from_url."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class StoreConfig:
    """Session store and ledger backend."""

    backend: Literal["memory", "redis"] = field(
        default_factory=lambda: _env_str("SESSION_BACKEND", "memory").lower()  # type: ignore[return-value]
    )
    # Seconds to wait for a per-session lock
    lock_timeout: float = field(
        default_factory=lambda: float(_env_str("LOCK_TIMEOUT", "5"))
    )
    history_limit: int = 50


@dataclass(frozen=True)
class GameConfig:
    """Table limits and payouts."""

    min_bet: int = 1
    max_bet: int = 1_000_000
    dealer_stands_on: int = 17
    blackjack_payout: float = 1.5
    starting_points: int = field(default_factory=lambda: _env_int("STARTING_POINTS", 1000))


@dataclass(frozen=True)
class AppConfig:
    """Top-level application settings."""

    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", False))
    host: str = field(default_factory=lambda: _env_str("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8000))
    log_level: str = field(default_factory=lambda: _env_str("LOG_LEVEL", "INFO").upper())

    redis: RedisConfig = field(default_factory=RedisConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    game: GameConfig = field(default_factory=GameConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)


def configure_logging(level: str | None = None) -> None:
    """Install a single stream handler on the root logger."""
    level = level or config.log_level
    root = logging.getLogger()
    if not any(getattr(h, "_blackjack_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "[{asctime}] [{levelname:<8}] {name}: {message}",
                "%Y-%m-%d %H:%M:%S",
                style="{",
            )
        )
        handler._blackjack_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level)


config = AppConfig()
