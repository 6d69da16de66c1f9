"""Tests for the centralized logging configuration module."""

from __future__ import annotations

import logging

import pytest

from Market_Health.logging_config import LOG_FORMAT, configure_logging


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset root logger state and the scan logger between tests."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_LEVEL_SCAN", raising=False)
    root = logging.getLogger()
    scan_logger = logging.getLogger("Market_Health.scan")
    original_level = root.level
    original_handlers = root.handlers[:]
    original_scan_level = scan_logger.level
    yield  # type: ignore[misc]
    root.setLevel(original_level)
    root.handlers = original_handlers
    scan_logger.setLevel(original_scan_level)


class TestConfigureLogging:
    """Tests for configure_logging() function."""

    def test_default_level_is_info(self) -> None:
        """Default call sets root logger to INFO."""
        configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_verbose_sets_debug(self) -> None:
        """verbose=True sets root logger to DEBUG."""
        configure_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_quiet_sets_warning(self) -> None:
        """quiet=True sets root logger to WARNING."""
        configure_logging(quiet=True)
        assert logging.getLogger().level == logging.WARNING

    def test_level_param_override(self) -> None:
        """Explicit level param sets the root logger level."""
        configure_logging(level="ERROR")
        assert logging.getLogger().level == logging.ERROR

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """LOG_LEVEL env var sets root logger level."""
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        configure_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_module_level_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """LOG_LEVEL_SCAN env var sets the scan logger level."""
        monkeypatch.setenv("LOG_LEVEL_SCAN", "DEBUG")
        configure_logging()
        assert logging.getLogger("Market_Health.scan").level == logging.DEBUG

    def test_explicit_environ(self) -> None:
        """An explicit environ mapping replaces os.environ and reports overrides."""
        overrides = configure_logging(environ={"LOG_LEVEL": "warning", "LOG_LEVEL_SCAN": "debug"})
        assert logging.getLogger().level == logging.WARNING
        assert overrides == {"Market_Health.scan": logging.DEBUG}

    def test_unknown_module_level_ignored(self) -> None:
        """An unknown LOG_LEVEL_SCAN value leaves the scan logger untouched."""
        scan_logger = logging.getLogger("Market_Health.scan")
        scan_logger.setLevel(logging.ERROR)
        overrides = configure_logging(environ={"LOG_LEVEL_SCAN": "LOUD"})
        assert overrides == {}
        assert scan_logger.level == logging.ERROR

    def test_unknown_level_param_falls_back_to_env(self) -> None:
        """An unknown level param defers to LOG_LEVEL."""
        configure_logging(level="chatty", environ={"LOG_LEVEL": "ERROR"})
        assert logging.getLogger().level == logging.ERROR

    def test_force_overrides_existing(self) -> None:
        """configure_logging() overrides a prior basicConfig(CRITICAL)."""
        logging.basicConfig(level=logging.CRITICAL)
        configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_verbose_overrides_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """verbose=True takes priority over LOG_LEVEL env var."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        configure_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_env_level_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Invalid LOG_LEVEL env var falls back to INFO."""
        monkeypatch.setenv("LOG_LEVEL", "INVALID")
        configure_logging()
        assert logging.getLogger().level == logging.INFO


class TestLogFormat:
    """Tests for the LOG_FORMAT constant."""

    def test_format_includes_timestamp(self) -> None:
        """LOG_FORMAT includes %(asctime)s for timestamp."""
        assert "%(asctime)s" in LOG_FORMAT

    def test_format_includes_name(self) -> None:
        """LOG_FORMAT includes %(name)s for logger name."""
        assert "%(name)s" in LOG_FORMAT
