# src/pollster/core/config.py
"""
Configuration schema and loading for polling runs.

Uses Pydantic for validation and PyYAML for loading.
Settings are frozen (immutable) after construction.

Example YAML:
    retry:
      count: 10
      interval_seconds: 0.5
      backoff: incremental
    exceptions:
      ignore_intermediate: true
      ignore_final: false
    timeout_seconds: 30
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from pollster.contracts.enums import BackoffKind
from pollster.engine.exception_policy import ExceptionPolicy
from pollster.engine.retry import RetryPolicy


class RetrySettings(BaseModel):
    """Retry budget and wait between attempts.

    count is the TOTAL number of attempts (0 runs nothing, 1 never waits).
    For exponential backoff, interval_seconds is the first wait and
    max_interval_seconds caps the growth.
    """

    model_config = {"frozen": True}

    count: int = Field(default=1, ge=0, description="Total number of attempts")
    interval_seconds: float = Field(default=0.0, ge=0, description="Wait between attempts (or its unit)")
    backoff: BackoffKind = Field(default=BackoffKind.CONSTANT, description="Wait strategy family")
    max_interval_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Upper bound of exponential waits",
    )

    @model_validator(mode="after")
    def validate_max_interval(self) -> "RetrySettings":
        if self.max_interval_seconds is not None and self.backoff != BackoffKind.EXPONENTIAL:
            raise ValueError("max_interval_seconds is only meaningful with exponential backoff")
        return self

    def to_policy(self) -> RetryPolicy:
        if self.backoff == BackoffKind.INCREMENTAL:
            return RetryPolicy.of_incremental(self.count, self.interval_seconds)
        if self.backoff == BackoffKind.EXPONENTIAL:
            return RetryPolicy.of_exponential(
                self.count,
                self.interval_seconds,
                self.max_interval_seconds if self.max_interval_seconds is not None else 60.0,
            )
        return RetryPolicy.of(self.count, self.interval_seconds)


class ExceptionSettings(BaseModel):
    """Which probe exceptions end a resolution."""

    model_config = {"frozen": True}

    ignore_intermediate: bool = Field(default=False, description="Retry after a probe exception")
    ignore_final: bool = Field(
        default=False,
        description="Do not raise the last attempt's exception at exhaustion",
    )

    def to_policy(self) -> ExceptionPolicy:
        return ExceptionPolicy(
            ignore_intermediate=self.ignore_intermediate,
            ignore_final=self.ignore_final,
        )


class PollingSettings(BaseModel):
    """Complete polling configuration."""

    model_config = {"frozen": True}

    retry: RetrySettings = Field(default_factory=RetrySettings)
    exceptions: ExceptionSettings = Field(default_factory=ExceptionSettings)
    timeout_seconds: float | None = Field(default=None, gt=0, description="Overall deadline of a run")


def load_settings(config_path: Path) -> PollingSettings:
    """Load polling settings from a YAML file.

    An empty file yields the defaults.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the document is not a mapping
        pydantic.ValidationError: If the values are invalid
    """
    with config_path.open(encoding="utf-8") as f:
        raw: Any = yaml.safe_load(f)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"{config_path}: expected a mapping at the top level, got {type(raw).__name__}")
    return PollingSettings.model_validate(raw)
