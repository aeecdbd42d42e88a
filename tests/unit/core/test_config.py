# tests/unit/core/test_config.py
"""Tests for polling settings and YAML loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from pollster.contracts.enums import BackoffKind
from pollster.core.config import (
    ExceptionSettings,
    PollingSettings,
    RetrySettings,
    load_settings,
)


class TestRetrySettings:
    def test_defaults(self) -> None:
        settings = RetrySettings()
        assert settings.count == 1
        assert settings.interval_seconds == 0.0
        assert settings.backoff == BackoffKind.CONSTANT
        assert settings.max_interval_seconds is None

    def test_constant_policy(self) -> None:
        policy = RetrySettings(count=3, interval_seconds=0.5).to_policy()
        assert policy.count == 3
        assert [policy.delay_before_attempt(n) for n in (2, 3)] == [0.5, 0.5]

    def test_incremental_policy(self) -> None:
        policy = RetrySettings(count=4, interval_seconds=0.5, backoff="incremental").to_policy()
        assert [policy.delay_before_attempt(n) for n in (2, 3, 4)] == [0.5, 1.0, 1.5]

    def test_exponential_policy_is_capped(self) -> None:
        policy = RetrySettings(
            count=10,
            interval_seconds=1,
            backoff=BackoffKind.EXPONENTIAL,
            max_interval_seconds=4,
        ).to_policy()
        assert policy.delay_before_attempt(10) <= 4

    def test_negative_count_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RetrySettings(count=-1)

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RetrySettings(interval_seconds=-0.1)

    def test_unknown_backoff_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RetrySettings(backoff="fibonacci")

    def test_max_interval_requires_exponential(self) -> None:
        with pytest.raises(ValidationError, match="exponential"):
            RetrySettings(backoff=BackoffKind.CONSTANT, max_interval_seconds=5)

    def test_frozen(self) -> None:
        settings = RetrySettings()
        with pytest.raises(ValidationError):
            settings.count = 5  # type: ignore[misc]


class TestExceptionSettings:
    def test_defaults_fail_fast(self) -> None:
        policy = ExceptionSettings().to_policy()
        assert not policy.ignore_intermediate
        assert not policy.ignore_final

    def test_flags_carried_over(self) -> None:
        policy = ExceptionSettings(ignore_intermediate=True, ignore_final=True).to_policy()
        assert policy.ignore_intermediate
        assert policy.ignore_final


class TestPollingSettings:
    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            PollingSettings(timeout_seconds=0)

    def test_nested_from_dict(self) -> None:
        settings = PollingSettings.model_validate(
            {"retry": {"count": 5, "backoff": "incremental"}, "timeout_seconds": 2}
        )
        assert settings.retry.count == 5
        assert settings.retry.backoff == BackoffKind.INCREMENTAL
        assert settings.exceptions == ExceptionSettings()
        assert settings.timeout_seconds == 2


class TestLoadSettings:
    def test_valid_file(self, tmp_path: Path) -> None:
        config = tmp_path / "polling.yaml"
        config.write_text(
            "retry:\n"
            "  count: 7\n"
            "  interval_seconds: 0.25\n"
            "exceptions:\n"
            "  ignore_intermediate: true\n"
            "timeout_seconds: 3\n"
        )

        settings = load_settings(config)

        assert settings.retry.count == 7
        assert settings.retry.interval_seconds == 0.25
        assert settings.exceptions.ignore_intermediate
        assert not settings.exceptions.ignore_final
        assert settings.timeout_seconds == 3

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        config = tmp_path / "empty.yaml"
        config.write_text("")
        assert load_settings(config) == PollingSettings()

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        config = tmp_path / "list.yaml"
        config.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_settings(config)

    def test_invalid_values(self, tmp_path: Path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("retry:\n  count: -3\n")
        with pytest.raises(ValidationError):
            load_settings(config)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")
