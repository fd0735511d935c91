import logging
import sys

from image_converter import logger as ic_logger


def _stderr_handlers(base: logging.Logger) -> list[logging.Handler]:
    return [
        h
        for h in base.handlers
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
    ]


def test_setup_logger_idempotent_handlers(monkeypatch):
    """Calling setup_logger() repeatedly should leave exactly one stderr StreamHandler."""
    monkeypatch.delenv("IMAGE_CONVERTER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("IMAGE_CONVERTER_LOG_CATS", raising=False)
    base = ic_logger.setup_logger(level=logging.DEBUG)
    _ = ic_logger.setup_logger(level=logging.DEBUG)

    assert len(_stderr_handlers(base)) == 1
    assert base.propagate is False


def test_env_level_overrides_argument(monkeypatch):
    monkeypatch.setenv("IMAGE_CONVERTER_LOG_LEVEL", "warning")
    base = ic_logger.setup_logger(level=logging.DEBUG)
    try:
        assert base.level == logging.WARNING
    finally:
        monkeypatch.delenv("IMAGE_CONVERTER_LOG_LEVEL")
        ic_logger.setup_logger()


def test_category_filter_keeps_listed_children(monkeypatch):
    monkeypatch.setenv("IMAGE_CONVERTER_LOG_CATS", "codec, loader")
    base = ic_logger.setup_logger(level=logging.DEBUG)
    try:
        (handler,) = _stderr_handlers(base)

        def _record(name: str) -> logging.LogRecord:
            return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)

        assert handler.filter(_record("image_converter.codec"))
        assert handler.filter(_record("image_converter.loader"))
        assert not handler.filter(_record("image_converter.backend"))
    finally:
        monkeypatch.delenv("IMAGE_CONVERTER_LOG_CATS")
        ic_logger.setup_logger()


def test_get_logger_returns_child():
    child = ic_logger.get_logger("codec")
    assert child.name == "image_converter.codec"
    assert ic_logger.get_logger().name == "image_converter"
