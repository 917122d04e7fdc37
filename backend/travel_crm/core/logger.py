# backend/travel_crm/core/logger.py

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional

from travel_crm.core.config_loader import settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5
MASK = "***"


def default_log_dir() -> Path:
    if settings.LOG_DIR:
        return Path(settings.LOG_DIR)
    return Path(__file__).resolve().parents[2] / "logs"


# -------------------------------------------------------------------
# SECRET MASKING
# -------------------------------------------------------------------
class SecretMaskFilter(logging.Filter):
    """Replaces configured secrets in the rendered message before any handler writes it."""

    def __init__(self, secrets: Iterable[Optional[str]]):
        super().__init__()
        # short values would mask ordinary words
        self.secrets = sorted({s for s in secrets if s and len(s) >= 6}, key=len, reverse=True)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, MASK)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def configured_secrets() -> list:
    return [settings.OPENAI_API_KEY, settings.smtp_password, settings.ADMIN_PASSWORD, settings.JWT_SECRET_KEY]


# -------------------------------------------------------------------
# LOGGER FACTORY
# -------------------------------------------------------------------
def build_logger(
    name: str = "travel_crm",
    log_dir: Optional[Path] = None,
    console_level: Optional[str] = None,
    secrets: Optional[Iterable[Optional[str]]] = None,
) -> logging.Logger:
    """Rotating file (INFO and up) plus console. Calling it twice for one name is a no-op."""
    built = logging.getLogger(name)
    if built.handlers:
        return built

    directory = log_dir or default_log_dir()
    directory.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    mask = SecretMaskFilter(configured_secrets() if secrets is None else secrets)

    file_handler = RotatingFileHandler(
        directory / "app.log",
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setLevel((console_level or settings.LOG_LEVEL).upper())

    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler.addFilter(mask)
        built.addHandler(handler)

    built.setLevel(logging.DEBUG)
    built.propagate = False
    return built


logger = build_logger()
logger.debug(f"Logging to {default_log_dir()}")
