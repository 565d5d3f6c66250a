import logging

from common import config
from common import logger as logger_module
from common.logger import get_logger


def test_logger_module_does_not_load_config_at_import():
    assert not hasattr(logger_module, "yaml_config")


def test_explicit_level_wins():
    log = get_logger("qagen.tests.explicit", level="warning")
    assert log.level == logging.WARNING
    assert log.propagate is False
    assert len(log.handlers) == 1


def test_default_level_comes_from_config(monkeypatch):
    monkeypatch.setattr(config.yaml_config.app, "log_level", "DEBUG")
    assert get_logger("qagen.tests.from_config").level == logging.DEBUG


def test_handlers_are_not_duplicated():
    first = get_logger("qagen.tests.once")
    assert get_logger("qagen.tests.once") is first
    assert len(first.handlers) == 1
