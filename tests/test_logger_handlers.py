import logging
import sys

from launcher_integrator import logger as li_logger


def _stderr_handlers(base):
    return [
        h
        for h in base.handlers
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
    ]


def test_setup_logger_idempotent_handlers():
    """Calling setup_logger() repeatedly should leave exactly one stderr StreamHandler."""
    base = li_logger.setup_logger(level=logging.DEBUG)
    _ = li_logger.setup_logger(level=logging.DEBUG)

    assert len(_stderr_handlers(base)) == 1
    assert base.propagate is False


def test_env_level_overrides_argument(monkeypatch):
    monkeypatch.setenv("LAUNCHER_INTEGRATOR_LOG_LEVEL", "error")
    base = li_logger.setup_logger(level=logging.DEBUG)
    assert base.level == logging.ERROR

    monkeypatch.delenv("LAUNCHER_INTEGRATOR_LOG_LEVEL")
    assert li_logger.setup_logger(level=logging.INFO).level == logging.INFO


def test_category_filter(monkeypatch):
    monkeypatch.setenv("LAUNCHER_INTEGRATOR_LOG_CATS", "cleanup, integration")
    base = li_logger.setup_logger()
    (handler,) = _stderr_handlers(base)

    def _record(name):
        return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)

    assert handler.filter(_record("launcher_integrator.cleanup"))
    assert not handler.filter(_record("launcher_integrator.staleness"))

    monkeypatch.delenv("LAUNCHER_INTEGRATOR_LOG_CATS")
    li_logger.setup_logger()
    assert handler.filter(_record("launcher_integrator.staleness"))


def test_get_logger_returns_children():
    assert li_logger.get_logger("cleanup").name == "launcher_integrator.cleanup"
    assert li_logger.get_logger().name == "launcher_integrator"
