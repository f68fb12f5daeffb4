from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_int(name: str, default: int, *, minimum: int) -> int:
    raw = _getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum} (got {value})")
    return value


@dataclass(frozen=True)
class Rewards:
    """Tunable reward rules for the gamification engine.

    Defaults mirror the values the learning platform shipped with:
    15 XP per lesson, 50 XP per finished course, 100 XP per level,
    a streak bonus of 5 XP per consecutive day capped at 25, and
    half of the quiz score (rounded down) as quiz XP.
    """

    lesson_xp: int = 15
    course_completion_xp: int = 50
    xp_per_level: int = 100
    streak_bonus_per_day: int = 5
    streak_bonus_cap: int = 25
    quiz_xp_divisor: int = 2


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    # PEM-encoded EC public key of the token issuer.
    jwt_public_key: str | None = None
    rewards: Rewards = field(default_factory=Rewards)

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_rewards() -> Rewards:
    defaults = Rewards()
    return Rewards(
        lesson_xp=_getenv_int("LESSON_XP", defaults.lesson_xp, minimum=0),
        course_completion_xp=_getenv_int(
            "COURSE_COMPLETION_XP", defaults.course_completion_xp, minimum=0
        ),
        xp_per_level=_getenv_int("XP_PER_LEVEL", defaults.xp_per_level, minimum=1),
        streak_bonus_per_day=_getenv_int(
            "STREAK_BONUS_PER_DAY", defaults.streak_bonus_per_day, minimum=0
        ),
        streak_bonus_cap=_getenv_int(
            "STREAK_BONUS_CAP", defaults.streak_bonus_cap, minimum=0
        ),
        quiz_xp_divisor=_getenv_int(
            "QUIZ_XP_DIVISOR", defaults.quiz_xp_divisor, minimum=1
        ),
    )


def _load_jwt_public_key(app_env: str) -> str | None:
    # Env files often carry PEM newlines as a literal backslash-n.
    raw = _getenv("JWT_PUBLIC_KEY", "").replace("\\n", "\n")
    if not raw:
        if app_env == "prod":
            raise ValueError("JWT_PUBLIC_KEY is required when APP_ENV=prod")
        return None
    if not raw.startswith("-----BEGIN PUBLIC KEY-----"):
        raise ValueError("JWT_PUBLIC_KEY must be a PEM public key")
    return raw


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    database_url = _getenv("DATABASE_URL", "") or None
    redis_url = _getenv("REDIS_URL", "") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("1", "true", "yes"),
        port=port,
        database_url=database_url,
        redis_url=redis_url,
        jwt_public_key=_load_jwt_public_key(app_env_raw),
        rewards=load_rewards(),
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
