"""Tests for tandem.runner.test module."""

from pathlib import Path

import pytest

from tandem.runner import Result, Test


class TestResultOrder:
    """Tests for the scheduling order of results."""

    def test_failed_sorts_before_unseen_before_passed(self):
        """Test that FAILED < PREPARED < SKIPPED < PASSED."""
        assert sorted([Result.PASSED, Result.SKIPPED, Result.FAILED, Result.PREPARED]) == [
            Result.FAILED,
            Result.PREPARED,
            Result.SKIPPED,
            Result.PASSED,
        ]

    def test_result_codes_are_stable(self):
        """Test the integer codes written to the outcome cache."""
        assert int(Result.FAILED) == 0
        assert int(Result.PREPARED) == 1
        assert int(Result.SKIPPED) == 2
        assert int(Result.PASSED) == 3


class TestSignature:
    """Tests for Test.signature and Test.name."""

    def test_signature_is_file_without_args(self):
        """Test that a test without arguments is identified by its file."""
        test = Test(file=Path("/suite/test_a.py"))
        assert test.signature == "/suite/test_a.py"

    def test_signature_includes_args(self):
        """Test that arguments are part of the identity."""
        plain = Test(file=Path("/suite/test_a.py"))
        with_args = Test(file=Path("/suite/test_a.py"), args=("--db", "pg"))
        assert with_args.signature == "/suite/test_a.py --db pg"
        assert plain.signature != with_args.signature

    def test_name_is_file_name(self):
        """Test that name drops the directory and ignores arguments."""
        test = Test(file=Path("/suite/test_a.py"), args=("--db", "pg"))
        assert test.name == "test_a.py"


class TestComplete:
    """Tests for Test.complete."""

    def test_new_test_is_prepared(self):
        """Test that a fresh test has no result."""
        test = Test(file=Path("test_a.py"))
        assert test.result is Result.PREPARED
        assert not test.has_result

    def test_complete_records_outcome(self):
        """Test that complete stores result, message, duration and output."""
        test = Test(file=Path("test_a.py"))
        returned = test.complete(Result.FAILED, message="boom", duration=1.5, output="log")
        assert returned is test
        assert test.result is Result.FAILED
        assert test.message == "boom"
        assert test.duration == 1.5
        assert test.output == "log"
        assert test.has_result

    def test_complete_rejects_prepared(self):
        """Test that PREPARED is not accepted as a terminal result."""
        test = Test(file=Path("test_a.py"))
        with pytest.raises(ValueError, match="terminal"):
            test.complete(Result.PREPARED)

    def test_complete_twice_raises(self):
        """Test that a test is completed exactly once."""
        test = Test(file=Path("test_a.py"))
        test.complete(Result.PASSED)
        with pytest.raises(RuntimeError, match="already completed as PASSED"):
            test.complete(Result.FAILED)
        assert test.result is Result.PASSED
