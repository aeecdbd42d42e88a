# src/pollster/cli.py
"""Pollster Command Line Interface.

Entry point for the pollster CLI tool. Waits for a filesystem condition
and reports the result through the exit code:

    0  the awaited result was found (and printed on stdout)
    1  retries were exhausted without a result
    2  the run failed, was cancelled or timed out, or the configuration is invalid
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from pathlib import Path
from typing import Any

import structlog
import typer
import yaml
from pydantic import ValidationError

from pollster import __version__
from pollster.contracts.errors import (
    PollingCancelledError,
    PollingError,
    PollingTimeoutError,
    QualificationError,
)
from pollster.core.config import PollingSettings, RetrySettings, load_settings
from pollster.engine.handle import AsyncHandle
from pollster.lang import wait_file
from pollster.lang.builder import RepeatStage, WaitResult, described

__all__ = ["app"]

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2

# Used when neither --config nor the flags set the retry budget
_DEFAULT_COUNT = 10
_DEFAULT_EVERY_SECONDS = 1.0

logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="pollster",
    help="Pollster: wait until a condition is met, with retries and timeouts.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"pollster version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Pollster: wait until a condition is met, with retries and timeouts."""
    from pollster.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(json_output=json_logs, level=log_level)


def _resolve_settings(
    config: Path | None,
    count: int | None,
    every: float | None,
    timeout: float | None,
) -> PollingSettings:
    """Load --config (if any) and apply explicit flags on top of it.

    Raises:
        typer.Exit: With EXIT_ERROR if the configuration is invalid.
    """
    try:
        if config is None:
            base = PollingSettings(
                retry=RetrySettings(count=_DEFAULT_COUNT, interval_seconds=_DEFAULT_EVERY_SECONDS),
            )
        else:
            base = load_settings(config)

        data: dict[str, Any] = base.model_dump()
        if count is not None:
            data["retry"]["count"] = count
        if every is not None:
            data["retry"]["interval_seconds"] = every
        if timeout is not None:
            data["timeout_seconds"] = timeout
        return PollingSettings.model_validate(data)
    except yaml.YAMLError as e:
        typer.echo(f"YAML syntax error in {config}: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from None
    except FileNotFoundError:
        typer.echo(f"Error: Config file not found: {config}", err=True)
        raise typer.Exit(EXIT_ERROR) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(EXIT_ERROR) from None
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from None


def _handle(stage: RepeatStage[Any], settings: PollingSettings) -> AsyncHandle[Any]:
    handle = stage.with_policy(settings.retry.to_policy())
    if settings.timeout_seconds is not None:
        handle = handle.with_timeout(settings.timeout_seconds)
    return handle


def _run(handle: AsyncHandle[Any], render: Callable[[Any], list[str]]) -> None:
    """Wait for the handle and translate the outcome into output and exit code."""
    try:
        result = handle.wait()
    except QualificationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from None
    except PollingTimeoutError as e:
        typer.echo(f"Timed out: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from None
    except PollingCancelledError as e:
        typer.echo(f"Cancelled: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from None
    except PollingError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from None

    if result is None:
        typer.echo("Nothing found.", err=True)
        raise typer.Exit(EXIT_NOT_FOUND)
    for line in render(result):
        typer.echo(line)


def _has_paths(paths: list[Path]) -> bool:
    return len(paths) > 0


_HAS_PATHS = described(_has_paths, "is not empty")


def _render_paths(paths: list[Path]) -> list[str]:
    return [str(p) for p in paths]


def _render_path(path: Path) -> list[str]:
    return [str(path)]


def _render_named(name: str, paths: list[Path]) -> list[str]:
    return [str(p) for p in paths if p.name == name]


def _contains_name(name: str) -> Callable[[list[Path]], bool]:
    return described(lambda paths: any(p.name == name for p in paths), f"contains {name}")


_COUNT_OPTION = typer.Option(None, "--count", "-c", min=0, help="Total number of attempts [default: 10].")
_EVERY_OPTION = typer.Option(None, "--every", "-e", min=0.0, help="Seconds between attempts [default: 1].")
_TIMEOUT_OPTION = typer.Option(None, "--timeout", "-t", min=0.0, help="Overall deadline in seconds.")
_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Path to a YAML polling configuration. Explicit flags override it.",
)


@app.command()
def file(
    directory: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=False,
        dir_okay=True,
        help="Directory to watch.",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Only accept a file with this name.",
    ),
    removed: bool = typer.Option(
        False,
        "--removed",
        help="Wait for a removal instead of a creation.",
    ),
    count: int | None = _COUNT_OPTION,
    every: float | None = _EVERY_OPTION,
    timeout: float | None = _TIMEOUT_OPTION,
    config: Path | None = _CONFIG_OPTION,
) -> None:
    """Wait for a file to appear in (or disappear from) a directory.

    Only changes made after the command starts are seen. Prints the
    matching paths, one per line.
    """
    settings = _resolve_settings(config, count, every, timeout)
    exception_policy = settings.exceptions.to_policy()

    stage: RepeatStage[Any]
    render: Callable[[Any], list[str]]
    if removed:
        removals = wait_file.removed_file_from(directory).with_exception_policy(exception_policy)
        if name is None:
            stage = removals.expecting(_HAS_PATHS)
            render = _render_paths
        else:
            stage = removals.expecting(_contains_name(name))
            render = partial(_render_named, name)
    elif name is not None:
        stage = wait_file.new_file_named_in(directory, name).with_exception_policy(exception_policy).expecting_not_null()
        render = _render_path
    else:
        stage = wait_file.new_file_in(directory).with_exception_policy(exception_policy).expecting(_HAS_PATHS)
        render = _render_paths

    logger.debug("Waiting for file", directory=str(directory), name=name, removed=removed)
    _run(_handle(stage, settings), render)


@app.command()
def exists(
    path: Path = typer.Argument(..., help="Path to wait for."),
    count: int | None = _COUNT_OPTION,
    every: float | None = _EVERY_OPTION,
    timeout: float | None = _TIMEOUT_OPTION,
    config: Path | None = _CONFIG_OPTION,
) -> None:
    """Wait until a path exists, then print it."""
    settings = _resolve_settings(config, count, every, timeout)

    def existing() -> Path | None:
        return path if path.exists() else None

    stage = (
        WaitResult.of(described(existing, f"{path} exists"))
        .with_exception_policy(settings.exceptions.to_policy())
        .expecting_not_null()
    )
    logger.debug("Waiting for path", path=str(path))
    _run(_handle(stage, settings), _render_path)


if __name__ == "__main__":
    app()
