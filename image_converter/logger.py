import logging
import os
import sys

# No session log file: the converter keeps nothing on disk between runs.

LEVEL_ENV = "IMAGE_CONVERTER_LOG_LEVEL"
CATS_ENV = "IMAGE_CONVERTER_LOG_CATS"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

_FORMATTER = logging.Formatter(fmt="[%(asctime)s] %(levelname)s: %(message)s", datefmt="%H:%M:%S")


class _CategoryFilter(logging.Filter):
    """Pass only records whose last logger name part is listed (codec, loader, ...)."""

    def __init__(self, allowed: set[str]) -> None:
        super().__init__()
        self.allowed = allowed

    def filter(self, record: logging.LogRecord) -> bool:
        return (record.name or "").rsplit(".", 1)[-1] in self.allowed


def _env_categories() -> set[str]:
    raw = os.getenv(CATS_ENV) or ""
    return {c.strip() for c in raw.split(",") if c.strip()}


def _stderr_handler(logger: logging.Logger) -> logging.StreamHandler:
    for h in logger.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr:
            return h
    handler = logging.StreamHandler(stream=sys.stderr)
    logger.addHandler(handler)
    return handler


def setup_logger(level: int = logging.INFO, name: str = "image_converter") -> logging.Logger:
    """Create or update the project logger.

    Env overrides are re-read on every call, so options parsed late on the
    command line still apply. The base logger keeps exactly one stderr handler
    whose formatter and category filter are refreshed in place.
    """
    logger = logging.getLogger(name)

    env_level = (os.getenv(LEVEL_ENV) or "").strip().lower()
    logger.setLevel(_LEVELS.get(env_level, level) if env_level else level)

    handler = _stderr_handler(logger)
    handler.setFormatter(_FORMATTER)
    handler.filters.clear()
    cats = _env_categories()
    if cats:
        handler.addFilter(_CategoryFilter(cats))

    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    base = setup_logger()
    return base if not name else base.getChild(name)
