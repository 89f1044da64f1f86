"""Runtime configuration read from the environment (and ``.env``)."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_DATABASE_URL = f"sqlite+aiosqlite:///{BASE_DIR / 'db' / 'database.db'}"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _secret_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value:
        value = value.strip().strip("'\"")
    return value or None


@dataclass
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    activation_secret: Optional[str] = field(default=None, repr=False)
    require_signature: bool = False
    signature_window_seconds: int = 300
    activation_delay_min_ms: int = 100
    activation_delay_max_ms: int = 300
    admin_token: Optional[str] = field(default=None, repr=False)
    log_level: str = "INFO"

    def __post_init__(self):
        if self.signature_window_seconds <= 0:
            raise RuntimeError("SIGNATURE_WINDOW_SECONDS must be positive")
        if self.activation_delay_min_ms < 0 or (
            self.activation_delay_max_ms < self.activation_delay_min_ms
        ):
            raise RuntimeError(
                "ACTIVATION_DELAY_MIN_MS/ACTIVATION_DELAY_MAX_MS must form a "
                "non-negative range"
            )

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``os.environ`` after loading ``.env``."""
        load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            activation_secret=_secret_env("ACTIVATION_SECRET"),
            require_signature=_bool_env("REQUIRE_SIGNATURE", False),
            signature_window_seconds=_int_env("SIGNATURE_WINDOW_SECONDS", 300),
            activation_delay_min_ms=_int_env("ACTIVATION_DELAY_MIN_MS", 100),
            activation_delay_max_ms=_int_env("ACTIVATION_DELAY_MAX_MS", 300),
            admin_token=_secret_env("ADMIN_TOKEN"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
