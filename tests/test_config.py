"""Tests for configuration defaults, constants and logging setup."""

from __future__ import annotations

import logging

import pytest

from regcm_post.core import config
from regcm_post.core.exceptions import RegcmPostError, UnresolvablePressureBracketError
from regcm_post.core.logging_config import PACKAGE_LOGGER, get_logger, set_log_level, setup_logging
from regcm_post.diagnostics import constants


class TestPressureLevelConfig:

    def test_standard_levels(self, monkeypatch):
        monkeypatch.delenv("REGCM_POST_PRESSURE_LEVELS", raising=False)
        levels = config._pressure_levels_from_env(config._STANDARD_PRESSURE_LEVELS)
        assert levels[0] == 1000.0
        assert levels[-1] == 100.0
        assert list(levels) == sorted(levels, reverse=True)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("REGCM_POST_PRESSURE_LEVELS", "1000, 850,500")
        assert config._pressure_levels_from_env((1.0,)) == (1000.0, 850.0, 500.0)

    def test_environment_override_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("REGCM_POST_PRESSURE_LEVELS", "1000,abc")
        with pytest.raises(ValueError, match="REGCM_POST_PRESSURE_LEVELS"):
            config._pressure_levels_from_env((1.0,))

    def test_schemes_cover_known_methods(self):
        assert set(config.PRESSURE_LEVEL_SCHEMES.values()) <= {"height", "log", "linear"}
        assert config.PRESSURE_LEVEL_SCHEMES["t"] == "log"
        assert config.PRESSURE_LEVEL_SCHEMES["ht"] == "height"


class TestConstants:

    def test_consistency(self):
        assert constants.validate_constants()

    def test_derived_ratios(self):
        assert constants.rovg == pytest.approx(constants.rgas / constants.gti)
        assert constants.rovcp == pytest.approx(0.2854, abs=1e-3)


class TestExceptions:

    def test_bracket_error_fields(self):
        err = UnresolvablePressureBracketError("intlog", "no regime", [1200.0])
        assert isinstance(err, RegcmPostError)
        assert err.routine == "intlog"
        assert err.levels == [1200.0]
        assert "Unresolvable pressure bracket in intlog" in str(err)
        assert "Details: no regime" in str(err)


class TestLogging:

    @pytest.fixture(autouse=True)
    def restore_package_logger(self):
        logger = logging.getLogger(PACKAGE_LOGGER)
        handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
        yield
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate

    def test_default_level_is_warning(self):
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.WARNING

    def test_setup_logging_to_file(self, tmp_path):
        log_file = tmp_path / "logs" / "post.log"
        logger = setup_logging(level="DEBUG", log_file=log_file)

        get_logger("tests").debug("hello from the tests")
        for handler in logger.handlers:
            handler.flush()

        text = log_file.read_text()
        assert "hello from the tests" in text
        assert "regcm_post.tests" in text

    def test_set_log_level(self):
        set_log_level("error")
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.ERROR
