"""Centralized logging configuration for the CLI entry point."""

from __future__ import annotations

import logging
import os
from pathlib import Path

LOG_FORMAT: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_MODULE_LOGGERS: dict[str, str] = {
    "SERVICES": "Market_Pulse.services",
    "DATA": "Market_Pulse.data",
    "ANALYSIS": "Market_Pulse.analysis",
    "PIPELINE": "Market_Pulse.pipeline",
    "REPORTING": "Market_Pulse.reporting",
}


def configure_logging(
    *,
    level: str = "",
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure root logger with a consistent format.

    Priority: verbose > quiet > level param > LOG_LEVEL env > INFO default.
    Uses force=True so repeated calls (tests, retries) replace prior handlers.
    Reads LOG_LEVEL_{MODULE} env vars for per-module overrides.

    When *log_file* is given, records are also appended to that file so a
    scheduled run leaves a per-run log behind.
    """
    if verbose:
        effective = logging.DEBUG
    elif quiet:
        effective = logging.WARNING
    elif level:
        effective = getattr(logging, level.upper(), logging.INFO)
    else:
        env_level = os.environ.get("LOG_LEVEL", "INFO")
        effective = getattr(logging, env_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(level=effective, format=LOG_FORMAT, handlers=handlers, force=True)

    # yfinance and httpx are chatty at INFO
    logging.getLogger("yfinance").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    # Apply per-module overrides from env vars
    for key, logger_name in _MODULE_LOGGERS.items():
        env_key = f"LOG_LEVEL_{key}"
        module_level = os.environ.get(env_key)
        if module_level:
            resolved = getattr(logging, module_level.upper(), None)
            if resolved is not None:
                logging.getLogger(logger_name).setLevel(resolved)
