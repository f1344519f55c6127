"""
Tests for data models: parameter validation, file records, groups and statistics.
"""
import os
import pytest
from twinfinder.core.models import (
    DEFAULT_MAX_READ_BYTES,
    DeduplicationParams,
    DeduplicationResult,
    DeduplicationStats,
    DigestMode,
    DuplicateGroup,
    FileRecord,
    OutputFormat,
    Stage,
)


class TestDeduplicationParams:
    def test_defaults(self):
        params = DeduplicationParams(root_dir="/data")
        assert params.max_read_bytes == DEFAULT_MAX_READ_BYTES == 1024 ** 3
        assert params.max_depth == 10
        assert params.workers == 10
        assert params.queue_depth == 30
        assert params.follow_symlinks is False
        assert params.weed is True
        assert params.verify is False
        assert params.mode == DigestMode.CONCURRENT
        assert params.output_format == OutputFormat.HUMAN

    @pytest.mark.parametrize("kwargs, message", [
        ({"root_dir": ""}, "Root directory"),
        ({"root_dir": "/d", "follow_symlinks": True}, "symbolic links"),
        ({"root_dir": "/d", "max_read_bytes": -1}, "read size"),
        ({"root_dir": "/d", "max_depth": -1}, "depth"),
        ({"root_dir": "/d", "workers": 0}, "Worker count"),
        ({"root_dir": "/d", "queue_depth": 0}, "Queue depth"),
    ])
    def test_invalid_values_raise(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            DeduplicationParams(**kwargs)


class TestFileRecord:
    def test_stat_is_requeried_each_time(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"12")
        record = FileRecord(str(path))
        assert record.stat().size == 2

        path.write_bytes(b"12345")
        assert record.stat().size == 5
        assert record.stat().is_regular
        assert not record.stat().is_symlink

    def test_identity_matches_for_hardlinks(self, tmp_path):
        path = tmp_path / "f"
        path.write_bytes(b"x")
        os.link(path, tmp_path / "g")
        assert FileRecord(str(path)).identity == FileRecord(str(tmp_path / "g")).identity

    def test_missing_file_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            FileRecord(str(tmp_path / "nope")).stat()


class TestDuplicateGroup:
    def test_keeper_and_count(self):
        group = DuplicateGroup(digest="d", size=3, paths=["/a", "/b", "/c"])
        assert group.keeper == "/a"
        assert group.duplicate_count == 2


class TestStatsAndResult:
    def test_stats_accumulate_per_stage(self):
        stats = DeduplicationStats()
        stats.update_stage(Stage.SCAN.value, groups_found=2, files_processed=5, duration=0.5)
        stats.update_stage(Stage.SCAN.value, groups_found=2, files_processed=5, duration=0.5)

        assert stats.stage_stats[Stage.SCAN.value] == {"groups": 4, "files": 10, "time": 1.0}
        assert Stage.DIGEST.value not in stats.stage_stats
        assert "Size grouping: 4 / 10 / 1.000s" in stats.print_summary()

    def test_result_duplicate_count_and_truthiness(self):
        result = DeduplicationResult(groups={"d": ["/a", "/b", "/c"], "e": ["/x", "/y"]}, stats=DeduplicationStats())
        assert result.duplicate_count == 3
        assert result
        assert not DeduplicationResult(groups={}, stats=DeduplicationStats())
