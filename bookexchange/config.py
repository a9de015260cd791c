"""Runtime settings, read from the environment (and an optional .env file)."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

RESERVATION_POLICIES = ("unconditional", "strict")
PROFILE_UPDATE_MODES = ("snapshot", "events")

SERVICE_PORTS = {"users": 5001, "books": 5002, "exchange": 5003}


@dataclass(frozen=True)
class Settings:
    db_path: str = "bookexchange.db"
    redis_url: str = "redis://localhost:6379"
    events_channel: str = "book-events"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    # "unconditional": reserve/return always succeed.
    # "strict": reject double reservations and returns by someone else.
    reservation_policy: str = "unconditional"
    # "snapshot": profile updates are applied to the users table.
    # "events": profile updates are only appended; reads fold the event log.
    profile_update_mode: str = "snapshot"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.reservation_policy not in RESERVATION_POLICIES:
            raise ValueError(
                f"reservation_policy must be one of {RESERVATION_POLICIES}, "
                f"got {self.reservation_policy!r}"
            )
        if self.profile_update_mode not in PROFILE_UPDATE_MODES:
            raise ValueError(
                f"profile_update_mode must be one of {PROFILE_UPDATE_MODES}, "
                f"got {self.profile_update_mode!r}"
            )

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> "Settings":
        """Build settings from BOOKEXCHANGE_* variables, loading .env first."""
        load_dotenv(env_file or Path.cwd() / ".env")
        defaults = cls()
        origins = os.environ.get("BOOKEXCHANGE_CORS_ORIGINS")
        return cls(
            db_path=os.environ.get("BOOKEXCHANGE_DB_PATH", defaults.db_path),
            redis_url=os.environ.get("BOOKEXCHANGE_REDIS_URL", defaults.redis_url),
            events_channel=os.environ.get("BOOKEXCHANGE_EVENTS_CHANNEL", defaults.events_channel),
            cors_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins
                else defaults.cors_origins
            ),
            reservation_policy=os.environ.get(
                "BOOKEXCHANGE_RESERVATION_POLICY", defaults.reservation_policy
            ),
            profile_update_mode=os.environ.get(
                "BOOKEXCHANGE_PROFILE_UPDATE_MODE", defaults.profile_update_mode
            ),
            log_level=os.environ.get("BOOKEXCHANGE_LOG_LEVEL", defaults.log_level).upper(),
        )
