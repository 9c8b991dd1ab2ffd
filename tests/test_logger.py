import logging

import pytest

from utils.logger import log_function, logger_manager


class _Worker:
    @log_function
    def ok(self, x):
        return x * 2

    @log_function
    def boom(self):
        raise ValueError("fallo")


def test_setup_logger_is_idempotent():
    a = logger_manager.setup_logger("tests.idempotent")
    handlers = list(a.handlers)
    b = logger_manager.setup_logger("tests.idempotent")
    assert a is b
    assert b.handlers == handlers


def test_log_function_returns_and_reraises(caplog):
    w = _Worker()
    with caplog.at_level(logging.DEBUG):
        assert w.ok(3) == 6
        with pytest.raises(ValueError):
            w.boom()
    assert any("_Worker.ok" in r.getMessage() for r in caplog.records)
    assert any(r.levelno == logging.ERROR and "fallo" in r.getMessage() for r in caplog.records)
