"""Runtime configuration resolved from environment variables.

Every setting has a default so a bare ``market-pulse run test`` works with
only a watchlist file in place.  Paths default under ``MARKET_PULSE_HOME``
(``~/.market-pulse``).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict

from Market_Pulse.utils.exceptions import ConfigError

DEFAULT_HOME: Final[Path] = Path("~/.market-pulse")
DEFAULT_ANTHROPIC_MODEL: Final[str] = "claude-sonnet-4-20250514"
DEFAULT_SMTP_HOST: Final[str] = "smtp.gmail.com"
DEFAULT_SMTP_PORT: Final[int] = 587
DEFAULT_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_RETRY_DELAY_SECONDS: Final[float] = 30.0


class Settings(BaseModel):
    """Resolved settings for one process."""

    model_config = ConfigDict(frozen=True)

    watchlist_path: Path
    data_dir: Path
    anthropic_api_key: str = ""
    anthropic_model: str = DEFAULT_ANTHROPIC_MODEL
    email_to: tuple[str, ...] = ()
    email_from: str = ""
    smtp_host: str = DEFAULT_SMTP_HOST
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_user: str = ""
    smtp_password: str = ""
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "logs"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from *environ* (defaults to ``os.environ``).

        Raises:
            ConfigError: If a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        home = Path(env.get("MARKET_PULSE_HOME", str(DEFAULT_HOME))).expanduser()

        recipients = tuple(
            addr.strip() for addr in env.get("EMAIL_TO", "").split(",") if addr.strip()
        )
        smtp_user = env.get("SMTP_USER", "").strip()

        return cls(
            watchlist_path=Path(
                env.get("MARKET_PULSE_WATCHLIST", str(home / "watchlist.conf"))
            ).expanduser(),
            data_dir=Path(env.get("MARKET_PULSE_DATA_DIR", str(home / "data"))).expanduser(),
            anthropic_api_key=env.get("ANTHROPIC_API_KEY", "").strip(),
            anthropic_model=env.get("ANTHROPIC_MODEL", DEFAULT_ANTHROPIC_MODEL),
            email_to=recipients,
            email_from=env.get("EMAIL_FROM", "").strip() or smtp_user,
            smtp_host=env.get("SMTP_HOST", DEFAULT_SMTP_HOST).strip(),
            smtp_port=_int_env(env, "SMTP_PORT", DEFAULT_SMTP_PORT),
            smtp_user=smtp_user,
            smtp_password=env.get("SMTP_PASS", ""),
            max_attempts=max(1, _int_env(env, "MARKET_PULSE_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)),
            retry_delay=_float_env(env, "MARKET_PULSE_RETRY_DELAY", DEFAULT_RETRY_DELAY_SECONDS),
        )


def _int_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        msg = f"{key} must be an integer, got {raw!r}"
        raise ConfigError(msg) from exc


def _float_env(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        msg = f"{key} must be a number, got {raw!r}"
        raise ConfigError(msg) from exc
