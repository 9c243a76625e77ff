"""Test discovery: expand paths, directories and glob patterns into files."""

from __future__ import annotations

import glob
import os
from collections.abc import Callable, Sequence
from pathlib import Path

from tandem.core.errors import InputError

GLOB_CHARS = "*?"


def is_pattern(path: str) -> bool:
    """Return True if ``path`` contains glob wildcards."""
    return any(char in path for char in GLOB_CHARS)


def _escape_brackets(path: str) -> str:
    # '[' is literal in test paths; only * and ? are wildcards
    return path.replace("[", "[[]")


def find_tests(
    path: str,
    patterns: Sequence[str],
    initiate: Callable[[Path], None],
) -> int:
    """Call ``initiate`` once for every test file found under ``path``.

    Directories are searched recursively: subdirectories first (sorted),
    then files matching each of ``patterns`` in order. Any other path is
    treated as a glob and every regular file it matches is a test.

    Args:
        path: File, directory or glob pattern.
        patterns: File name patterns identifying tests inside directories.
        initiate: Callback receiving the absolute path of each test file.

    Returns:
        Number of files passed to ``initiate``.

    Raises:
        InputError: If ``path`` is not a pattern and does not exist.
    """
    if not is_pattern(path) and not os.path.exists(path):
        raise InputError(f"File or directory '{path}' not found.")

    found = 0
    if os.path.isdir(path):
        for entry in sorted(glob.glob(os.path.join(_escape_brackets(path), "*"))):
            if os.path.isdir(entry):
                found += find_tests(entry, patterns, initiate)
        for pattern in patterns:
            found += _initiate_matches(
                os.path.join(_escape_brackets(path), pattern), initiate
            )
        return found

    return _initiate_matches(_escape_brackets(path), initiate)


def _initiate_matches(expression: str, initiate: Callable[[Path], None]) -> int:
    found = 0
    for file in sorted(glob.glob(expression)):
        if os.path.isfile(file):
            initiate(Path(file).resolve())
            found += 1
    return found
