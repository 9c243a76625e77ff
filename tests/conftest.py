"""Pytest fixtures for Tandem tests."""

import logging
import textwrap
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset CLI and logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    import tandem.cli.helpers as helpers

    original_output_level = helpers.get_output_level()
    helpers.reset_logging_state()
    helpers.set_output_level(helpers.OutputLevel.NORMAL)

    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    helpers.reset_logging_state()
    helpers.set_output_level(original_output_level)

    restore_root_handlers(original_handlers)


def restore_root_handlers(original_handlers: list[logging.Handler]) -> None:
    """Put back the root handlers saved before a test.

    Handlers a test installed through configure_logging are closed, so their
    log files are released; pytest's own capture handlers are left open.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if handler not in original_handlers and not type(handler).__module__.startswith("_pytest"):
            handler.close()
    for handler in original_handlers:
        root_logger.addHandler(handler)


@pytest.fixture
def write_test(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes a Python test script under tmp_path.

    The script body is dedented; parent directories are created.
    """

    def _write(relative: str, body: str = "") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(body))
        return path

    return _write
