"""Tests for settings."""

import pytest
from pydantic import ValidationError

from f06kit.config import Settings
from f06kit.models import MissingRowPolicy, ToleranceMode


class TestSettings:
    """Tests for environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("F06KIT_MAX_BLANK_RUN", raising=False)
        settings = Settings(_env_file=None)

        assert settings.max_blank_run == 2
        assert settings.merge_blocks
        assert settings.tolerance.mode == ToleranceMode.ABSOLUTE_OR_RELATIVE
        assert settings.tolerance.abs_tol == 0.0
        assert not settings.tolerance.flag_sign_change
        assert settings.missing_rows == MissingRowPolicy.FLAG

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("F06KIT_MAX_BLANK_RUN", "4")
        monkeypatch.setenv("F06KIT_TOLERANCE_MODE", "relative")
        monkeypatch.setenv("F06KIT_REL_TOLERANCE", "0.001")
        monkeypatch.setenv("F06KIT_FLAG_SIGN_CHANGE", "true")
        monkeypatch.setenv("F06KIT_MISSING_ROWS", "zero")

        settings = Settings(_env_file=None)

        assert settings.max_blank_run == 4
        assert settings.tolerance.mode == ToleranceMode.RELATIVE
        assert settings.tolerance.rel_tol == 0.001
        assert settings.tolerance.flag_sign_change
        assert settings.missing_rows == MissingRowPolicy.ZERO

    def test_blank_run_below_one_rejected(self, monkeypatch):
        monkeypatch.setenv("F06KIT_MAX_BLANK_RUN", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)
