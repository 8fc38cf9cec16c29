"""Tests for console and file logging setup."""
import logging

from kanto.core import logger as kanto_logger
from kanto.core.logger import get_logger, setup_file_logging


class TestGetLogger:
    """Module loggers defer to the kanto logger."""

    def test_module_logger_has_no_own_handlers_or_level(self):
        log = get_logger("kanto.services.example")

        assert log.handlers == []
        assert log.level == logging.NOTSET
        assert log.propagate
        assert log.getEffectiveLevel() == logging.INFO


class TestSetupFileLogging:
    """File logging and verbosity."""

    def test_verbose_writes_debug_from_module_loggers(self, tmp_path):
        log_file = tmp_path / "logs" / "kanto.log"

        setup_file_logging(log_file=str(log_file), verbose=True)
        get_logger("kanto.core.pipeline").debug("Running step: validate")

        text = log_file.read_text()
        assert "Kanto logging initialized" in text
        assert "DEBUG | Running step: validate" in text

    def test_default_level_drops_debug(self, tmp_path):
        log_file = tmp_path / "kanto.log"

        setup_file_logging(log_file=str(log_file))
        get_logger("kanto.core.pipeline").debug("hidden detail")
        get_logger("kanto.core.pipeline").info("visible detail")

        text = log_file.read_text()
        assert "hidden detail" not in text
        assert "visible detail" in text

    def test_second_call_replaces_file_handler(self, tmp_path):
        first = tmp_path / "first.log"
        second = tmp_path / "second.log"

        setup_file_logging(log_file=str(first))
        setup_file_logging(log_file=str(second))
        get_logger("kanto.cli").info("after switch")

        root = logging.getLogger(kanto_logger.ROOT_LOGGER)
        file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert "after switch" in second.read_text()
        assert "after switch" not in first.read_text()

    def test_falls_back_to_tmp(self, tmp_path, monkeypatch):
        fallback = tmp_path / "fallback.log"
        monkeypatch.setattr(kanto_logger, "LOG_FILE", tmp_path / "var" / "kanto.log")
        monkeypatch.setattr(kanto_logger, "FALLBACK_LOG_FILE", fallback)

        def refuse(target):
            if target == fallback:
                return logging.FileHandler(target)
            raise PermissionError(13, "Permission denied", str(target))

        monkeypatch.setattr(kanto_logger, "_open_log_file", refuse)

        assert setup_file_logging() == fallback
        assert fallback.exists()
