"""Logging utilities for signalform.

Dual-channel logging:
- Console handler: INFO/WARNING/ERROR to stderr.
- File handler: level driven by environment (.env), written under ./logs by default,
  with filename pattern: <kind>-<action>-YYYY-MM-DD.log.

Every handler carries :class:`MaskSecretsFilter` so the SignalFx token never
reaches a log sink, even when a request header or a config dict is logged.

``setup_logging(...)`` is idempotent: calling it again reconfigures the root
logger without duplicating handlers.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEF_CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
DEF_FILE_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s "
    "[%(filename)s:%(lineno)d %(funcName)s] - %(message)s"
)

REDACTED = "***REDACTED***"


class MaskSecretsFilter(logging.Filter):
    """Redact SignalFx tokens and passwords from log records."""

    _patterns = [
        re.compile(r"(X-SF-Token['\"]?\s*[:=]\s*['\"]?)([A-Za-z0-9._-]+)", re.IGNORECASE),
        re.compile(r"(auth_token['\"]?\s*[:=]\s*['\"]?)([A-Za-z0-9._-]+)", re.IGNORECASE),
        re.compile(r"(\btoken\s*[=:]\s*)([A-Za-z0-9._-]+)", re.IGNORECASE),
        re.compile(r"(password\s*[=:]\s*)([^,\s]+)", re.IGNORECASE),
    ]

    @staticmethod
    def mask(text: str) -> str:
        masked = text
        for pat in MaskSecretsFilter._patterns:
            masked = pat.sub(r"\1" + REDACTED, masked)
        return masked

    def filter(self, record: logging.LogRecord) -> bool:
        # Secret names and values are often split between msg and args
        # ("auth_token=%s"), so mask the rendered message.
        if record.args:
            try:
                rendered = record.getMessage()
            except (TypeError, ValueError):
                rendered = None
            if rendered is not None:
                record.msg = rendered
                record.args = None
        if isinstance(record.msg, str):
            record.msg = self.mask(record.msg)
        return True


def _load_env() -> None:
    """Load variables from a .env file found from the current directory upwards."""
    env_path = find_dotenv(usecwd=True) or ""
    if env_path:
        load_dotenv(env_path, override=False)


def _resolve_file_level() -> int:
    """Resolve the numeric level for the *file* handler from environment.

    Precedence:
        1) SIGNALFORM_LOG_FILE_LEVEL
        2) SIGNALFORM_LOG_LEVEL
        3) DEBUG
    """
    lvl_name = (
        os.getenv("SIGNALFORM_LOG_FILE_LEVEL")
        or os.getenv("SIGNALFORM_LOG_LEVEL")
        or "DEBUG"
    ).upper()
    return getattr(logging, lvl_name, logging.DEBUG)


def _ensure_logs_dir() -> Path:
    """Return the logs directory path, creating it if necessary."""
    base = os.getenv("SIGNALFORM_LOG_DIR") or "./logs"
    p = Path(base)
    p.mkdir(parents=True, exist_ok=True)
    return p


def _build_log_filename(kind: str, action: str) -> str:
    ts = datetime.now().strftime("%Y-%m-%d")
    return f"{kind}-{action}-{ts}.log"


def setup_logging(
    level: Optional[str] = None,
    *,
    kind: Optional[str] = None,
    action: Optional[str] = None,
) -> Optional[Path]:
    """Configure the root logger with console + optional file handlers.

    Args:
        level: Optional global level; only used as a floor for the root logger.
        kind: Resource kind (e.g. ``signalform_detector``) for the log filename.
        action: Lifecycle operation (e.g. ``create``) for the log filename.

    Returns:
        The log file path when a file handler was installed, else ``None``.
    """
    _load_env()
    logging.captureWarnings(True)

    console_level = logging.INFO
    file_level = _resolve_file_level()

    root_level_name = (level or os.getenv("SIGNALFORM_LOG_LEVEL") or "DEBUG").upper()
    root_level_from_level = getattr(logging, root_level_name, logging.DEBUG)
    root_level = min(console_level, file_level, root_level_from_level)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    mask = MaskSecretsFilter()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(DEF_CONSOLE_FORMAT))
    console_handler.addFilter(mask)
    root.addHandler(console_handler)

    logfile: Optional[Path] = None
    if kind and action:
        logfile = _ensure_logs_dir() / _build_log_filename(kind, action)
        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(DEF_FILE_FORMAT))
        file_handler.addFilter(mask)
        root.addHandler(file_handler)

    root.setLevel(root_level)
    return logfile


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a child logger with the given name."""
    return logging.getLogger(name or "signalform")
