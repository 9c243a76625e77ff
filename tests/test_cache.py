"""Tests for tandem.runner.cache module."""

import os
from pathlib import Path

import pytest

from tandem.core.errors import ConfigurationError
from tandem.runner import OutcomeCache, Result, Test, prepare_temp_directory
from tandem.runner.cache import CACHE_SUBDIRECTORY


@pytest.fixture
def cache(tmp_path: Path) -> OutcomeCache:
    return OutcomeCache(prepare_temp_directory(tmp_path))


class TestPrepareTempDirectory:
    """Tests for prepare_temp_directory."""

    def test_creates_cache_subdirectory(self, tmp_path: Path):
        """Test that the cache lives in a Tandem subdirectory."""
        cache_dir = prepare_temp_directory(tmp_path)
        assert cache_dir == tmp_path.resolve() / CACHE_SUBDIRECTORY
        assert cache_dir.is_dir()

    def test_existing_subdirectory_is_reused(self, tmp_path: Path):
        """Test that preparing twice is harmless."""
        first = prepare_temp_directory(tmp_path)
        (first / "marker").write_text("x")
        second = prepare_temp_directory(tmp_path)
        assert first == second
        assert (second / "marker").exists()

    def test_missing_directory_raises(self, tmp_path: Path):
        """Test that a non-existent path is rejected."""
        missing = tmp_path / "nope"
        with pytest.raises(ConfigurationError, match="is not a writable directory"):
            prepare_temp_directory(missing)

    def test_file_instead_of_directory_raises(self, tmp_path: Path):
        """Test that a regular file is rejected."""
        file = tmp_path / "file.txt"
        file.write_text("")
        with pytest.raises(ConfigurationError):
            prepare_temp_directory(file)

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="root ignores directory permissions",
    )
    def test_read_only_directory_raises(self, tmp_path: Path):
        """Test that a directory without write permission is rejected."""
        read_only = tmp_path / "ro"
        read_only.mkdir()
        read_only.chmod(0o500)
        try:
            with pytest.raises(ConfigurationError):
                prepare_temp_directory(read_only)
        finally:
            read_only.chmod(0o700)


class TestFilenames:
    """Tests for cache file naming."""

    def test_filename_uses_stem_and_short_hash(self, cache: OutcomeCache):
        """Test the <stem>.<hash>.result naming."""
        name = cache.filename_for(Test(file=Path("/a/test_login.py"))).name
        stem, digest, suffix = name.split(".")
        assert stem == "test_login"
        assert len(digest) == 5
        assert suffix == "result"

    def test_same_file_name_in_different_directories_does_not_collide(
        self, cache: OutcomeCache
    ):
        """Test that the hash separates equally named files."""
        a = cache.filename_for(Test(file=Path("/a/test_x.py")))
        b = cache.filename_for(Test(file=Path("/b/test_x.py")))
        assert a != b

    def test_args_change_the_filename(self, cache: OutcomeCache):
        """Test that the same file with different args is a different entry."""
        a = cache.filename_for(Test(file=Path("/a/test_x.py")))
        b = cache.filename_for(Test(file=Path("/a/test_x.py"), args=("--fast",)))
        assert a != b


class TestLastResult:
    """Tests for OutcomeCache.last_result."""

    def test_unseen_test_is_prepared(self, cache: OutcomeCache):
        """Test that a test without a cache file reads as PREPARED."""
        assert cache.last_result(Test(file=Path("/a/test_x.py"))) is Result.PREPARED

    def test_reads_recorded_result(self, tmp_path: Path):
        """Test that a result written by one cache is read by another."""
        cache_dir = prepare_temp_directory(tmp_path)
        test = Test(file=Path("/a/test_x.py")).complete(Result.FAILED)
        OutcomeCache(cache_dir).record(test)

        fresh = OutcomeCache(cache_dir)
        assert fresh.last_result(Test(file=Path("/a/test_x.py"))) is Result.FAILED

    def test_garbled_entry_reads_as_prepared(self, cache: OutcomeCache):
        """Test that an unreadable cache file does not break the run."""
        test = Test(file=Path("/a/test_x.py"))
        cache.filename_for(test).write_text("not a number")
        assert cache.last_result(test) is Result.PREPARED

    def test_lookup_is_memoised(self, cache: OutcomeCache):
        """Test that the file is read at most once per signature."""
        test = Test(file=Path("/a/test_x.py"))
        file = cache.filename_for(test)
        file.write_text("3")
        assert cache.last_result(test) is Result.PASSED
        file.write_text("0")
        assert cache.last_result(test) is Result.PASSED


class TestRecord:
    """Tests for OutcomeCache.record."""

    def test_record_writes_result_code(self, cache: OutcomeCache):
        """Test that the file holds the bare result code."""
        test = Test(file=Path("/a/test_x.py")).complete(Result.SKIPPED)
        assert cache.record(test) is True
        assert cache.filename_for(test).read_text() == "2"

    def test_unchanged_result_is_not_rewritten(self, tmp_path: Path):
        """Test that recording the cached outcome again writes nothing."""
        cache_dir = prepare_temp_directory(tmp_path)
        first = Test(file=Path("/a/test_x.py")).complete(Result.PASSED)
        OutcomeCache(cache_dir).record(first)

        cache = OutcomeCache(cache_dir)
        again = Test(file=Path("/a/test_x.py")).complete(Result.PASSED)
        file = cache.filename_for(again)
        os.utime(file, (0, 0))

        assert cache.record(again) is False
        assert file.stat().st_mtime == 0

    def test_changed_result_is_rewritten(self, tmp_path: Path):
        """Test that a new outcome replaces the old one."""
        cache_dir = prepare_temp_directory(tmp_path)
        OutcomeCache(cache_dir).record(
            Test(file=Path("/a/test_x.py")).complete(Result.PASSED)
        )

        cache = OutcomeCache(cache_dir)
        failed = Test(file=Path("/a/test_x.py")).complete(Result.FAILED)
        assert cache.record(failed) is True
        assert cache.filename_for(failed).read_text() == "0"
        assert cache.last_result(failed) is Result.FAILED
