# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings
from structlog.testing import capture_logs

from tests.helpers.probes import RecordingHook


@pytest.fixture
def recording_hook() -> RecordingHook:
    return RecordingHook()


@pytest.fixture
def executor() -> Iterator[ThreadPoolExecutor]:
    """Dedicated worker pool, shut down after the test."""
    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="pollster-test")
    yield pool
    pool.shutdown(wait=True, cancel_futures=True)


@pytest.fixture
def captured_logs() -> Iterator[list[dict[str, Any]]]:
    """Capture structlog events emitted during the test."""
    with capture_logs() as logs:
        yield logs


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
