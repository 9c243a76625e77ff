"""Outcome cache: last known result per test signature.

The cache only biases scheduling order across runs; it never changes
what a test's outcome is. Each test gets one small file in the cache
directory, named from the test file's stem plus a short hash of the
signature (two tests sharing a file name in different directories must
not collide), holding the bare result code as text.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from tandem.core.errors import ConfigurationError
from tandem.core.logging import get_logger
from tandem.runner.test import Result, Test

_logger = get_logger("cache")

CACHE_SUBDIRECTORY = "Tandem"
RESULT_SUFFIX = ".result"


def prepare_temp_directory(path: Path) -> Path:
    """Validate a temp directory and return the cache directory inside it.

    Args:
        path: An existing, writable directory.

    Returns:
        Absolute path of ``<path>/Tandem``, created if missing.

    Raises:
        ConfigurationError: If ``path`` is not a writable directory or the
            cache subdirectory cannot be created.
    """
    if not path.is_dir() or not os.access(path, os.W_OK):
        raise ConfigurationError(f"Path '{path}' is not a writable directory.")

    cache_dir = path.resolve() / CACHE_SUBDIRECTORY
    try:
        cache_dir.mkdir(exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create '{cache_dir}' directory.") from e
    return cache_dir


class OutcomeCache:
    """Reads and writes last outcomes in one directory.

    Lookups are memoised for the lifetime of the instance; the memo also
    remembers what was last written so an unchanged outcome costs no write.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self._last_results: dict[str, Result] = {}

    def filename_for(self, test: Test) -> Path:
        digest = hashlib.md5(test.signature.encode("utf-8")).hexdigest()[:5]
        return self.directory / f"{test.file.stem}.{digest}{RESULT_SUFFIX}"

    def last_result(self, test: Test) -> Result:
        """Return the cached outcome of ``test``; PREPARED when unseen."""
        signature = test.signature
        cached = self._last_results.get(signature)
        if cached is not None:
            return cached

        result = Result.PREPARED
        file = self.filename_for(test)
        if file.is_file():
            try:
                result = Result(int(file.read_text().strip()))
            except ValueError:
                _logger.warning("cache.unreadable_entry", file=str(file))

        self._last_results[signature] = result
        return result

    def record(self, test: Test) -> bool:
        """Persist the outcome of ``test`` if it differs from the cached one.

        Returns:
            True if the cache file was written.
        """
        if self.last_result(test) == test.result:
            return False

        file = self.filename_for(test)
        file.write_text(str(int(test.result)))
        self._last_results[test.signature] = test.result
        _logger.debug("cache.recorded", file=str(file), result=test.result.name)
        return True
