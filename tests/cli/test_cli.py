# tests/cli/test_cli.py
"""Tests for the pollster CLI."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog
from typer.testing import CliRunner

from pollster.cli import EXIT_ERROR, EXIT_FOUND, EXIT_NOT_FOUND, app
from tests.helpers.files import FileChurner

# Stderr output is combined with stdout by default when using CliRunner.invoke()
runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    # The CLI callback configures logging globally
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestCLIBasics:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "pollster" in result.output.lower()

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "file" in result.output
        assert "exists" in result.output

    def test_exit_codes_are_distinct(self) -> None:
        assert len({EXIT_FOUND, EXIT_NOT_FOUND, EXIT_ERROR}) == 3


class TestExistsCommand:
    def test_existing_path(self, tmp_path: Path) -> None:
        target = tmp_path / "ready.flag"
        target.write_text("")

        result = runner.invoke(app, ["exists", str(target), "--count", "1"])

        assert result.exit_code == EXIT_FOUND
        assert str(target) in result.output

    def test_missing_path_exhausts(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["exists", str(tmp_path / "never"), "--count", "2", "--every", "0.01"])

        assert result.exit_code == EXIT_NOT_FOUND
        assert "Nothing found." in result.output

    def test_timeout(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            ["exists", str(tmp_path / "never"), "--count", "100", "--every", "0.05", "--timeout", "0.1"],
        )

        assert result.exit_code == EXIT_ERROR
        assert "Timed out" in result.output

    def test_verbose_logs_attempts(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            ["--verbose", "exists", str(tmp_path / "never"), "--count", "2", "--every", "0"],
        )

        assert result.exit_code == EXIT_NOT_FOUND
        assert "Probe result rejected" in result.output


class TestConfigOption:
    def test_config_file_sets_budget(self, tmp_path: Path) -> None:
        config = tmp_path / "polling.yaml"
        config.write_text("retry:\n  count: 2\n  interval_seconds: 0.01\n")

        result = runner.invoke(app, ["exists", str(tmp_path / "never"), "--config", str(config)])

        assert result.exit_code == EXIT_NOT_FOUND

    def test_flags_override_config(self, tmp_path: Path) -> None:
        config = tmp_path / "polling.yaml"
        config.write_text("retry:\n  count: 1000\n  interval_seconds: 10\n")

        result = runner.invoke(
            app,
            ["exists", str(tmp_path / "never"), "--config", str(config), "--count", "1"],
        )

        assert result.exit_code == EXIT_NOT_FOUND

    def test_config_timeout(self, tmp_path: Path) -> None:
        config = tmp_path / "polling.yaml"
        config.write_text("retry:\n  count: 100\n  interval_seconds: 0.05\ntimeout_seconds: 0.1\n")

        result = runner.invoke(app, ["exists", str(tmp_path / "never"), "--config", str(config)])

        assert result.exit_code == EXIT_ERROR
        assert "Timed out" in result.output

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "broken.yaml"
        config.write_text("retry: [unclosed\n")

        result = runner.invoke(app, ["exists", str(tmp_path), "--config", str(config)])

        assert result.exit_code == EXIT_ERROR
        assert "YAML syntax error" in result.output

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        config = tmp_path / "list.yaml"
        config.write_text("- retry\n")

        result = runner.invoke(app, ["exists", str(tmp_path), "--config", str(config)])

        assert result.exit_code == EXIT_ERROR
        assert "mapping" in result.output

    def test_invalid_values(self, tmp_path: Path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("retry:\n  backoff: fibonacci\n")

        result = runner.invoke(app, ["exists", str(tmp_path), "--config", str(config)])

        assert result.exit_code == EXIT_ERROR
        assert "retry.backoff" in result.output

    def test_missing_config(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["exists", str(tmp_path), "--config", str(tmp_path / "absent.yaml")])

        assert result.exit_code == EXIT_ERROR
        assert "Config file not found" in result.output

    def test_zero_timeout_rejected(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["exists", str(tmp_path), "--timeout", "0"])

        assert result.exit_code == EXIT_ERROR
        assert "timeout_seconds" in result.output


class TestFileCommand:
    def test_new_file(self, tmp_path: Path) -> None:
        with FileChurner(tmp_path):
            result = runner.invoke(app, ["file", str(tmp_path), "--count", "250", "--every", "0.02"])

        assert result.exit_code == EXIT_FOUND
        assert "churn-" in result.output

    def test_named_file(self, tmp_path: Path) -> None:
        with FileChurner(tmp_path, name="target.txt"):
            result = runner.invoke(
                app,
                ["file", str(tmp_path), "--name", "target.txt", "--count", "250", "--every", "0.02"],
            )

        assert result.exit_code == EXIT_FOUND
        assert str(tmp_path / "target.txt") in result.output

    def test_removed_file(self, tmp_path: Path) -> None:
        with FileChurner(tmp_path, remove=True):
            result = runner.invoke(app, ["file", str(tmp_path), "--removed", "--count", "250", "--every", "0.02"])

        assert result.exit_code == EXIT_FOUND
        assert "churn-" in result.output

    def test_nothing_happens(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["file", str(tmp_path), "--count", "2", "--every", "0.01"])

        assert result.exit_code == EXIT_NOT_FOUND
        assert "Nothing found." in result.output

    def test_missing_directory(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["file", str(tmp_path / "missing")])
        assert result.exit_code == 2
