"""
Unit tests for the pipeline stages between scanner and report:
hardlink collapse, head/tail weeding, sequential digest and byte verification.
"""
import os
import pytest
from unittest import mock
from twinfinder.core.stages import (
    HardlinkStage,
    HeadSamplePass,
    TailSamplePass,
    BoundaryWeedStage,
    SequentialDigestStage,
    VerifyStage,
    HEAD_SAMPLE_SIZE,
    TAIL_SAMPLE_SIZE,
)
from twinfinder.core.hasher import HasherImpl
from twinfinder.core.models import Stage


def write(path, content: bytes) -> str:
    path.write_bytes(content)
    return str(path)


class TestSampleSizes:
    def test_window_sizes(self):
        assert HEAD_SAMPLE_SIZE == 64
        assert TAIL_SAMPLE_SIZE == 1024


class TestHardlinkStage:
    """Paths naming the same inode collapse to the smallest name."""

    def test_collapses_hardlinks_to_smallest_path(self, tmp_path):
        original = write(tmp_path / "b_original.txt", b"data")
        link = str(tmp_path / "a_link.txt")
        os.link(original, link)
        other = write(tmp_path / "c_other.txt", b"data")

        result = HardlinkStage().process({4: [original, link, other]})
        assert result == {4: [link, other]}

    def test_group_of_one_identity_is_removed(self, tmp_path):
        original = write(tmp_path / "file.txt", b"data")
        os.link(original, tmp_path / "link1.txt")
        os.link(original, tmp_path / "link2.txt")

        group = sorted([original, str(tmp_path / "link1.txt"), str(tmp_path / "link2.txt")])
        assert HardlinkStage().process({4: group}) == {}

    def test_is_idempotent(self, tmp_path):
        a = write(tmp_path / "a", b"xy")
        os.link(a, tmp_path / "b")
        c = write(tmp_path / "c", b"xy")
        d = write(tmp_path / "d", b"xy")

        stage = HardlinkStage()
        once = stage.process({2: [a, str(tmp_path / "b"), c, d]})
        assert stage.process(once) == once

    def test_stat_failure_drops_member(self, tmp_path):
        a = write(tmp_path / "a", b"xy")
        b = write(tmp_path / "b", b"xy")
        gone = str(tmp_path / "gone")

        assert HardlinkStage().process({2: [a, b, gone]}) == {2: [a, b]}

    def test_progress_and_cancellation(self, tmp_path):
        a = write(tmp_path / "a", b"xy")
        b = write(tmp_path / "b", b"xy")
        calls = []
        HardlinkStage().process({2: [a, b]}, progress_callback=lambda *args: calls.append(args))
        assert calls == [(Stage.HARDLINK.value, 2, 2)]

        assert HardlinkStage().process({2: [a, b]}, stopped_flag=lambda: True) == {}


class TestBoundaryWeeding:
    """Head and tail sample passes drop files that cannot be duplicates."""

    def test_head_pass_drops_files_differing_in_first_bytes(self, tmp_path):
        a = write(tmp_path / "a", b"X" + b"0" * 2047)
        b = write(tmp_path / "b", b"Y" + b"0" * 2047)
        c = write(tmp_path / "c", b"Y" + b"0" * 2047)

        assert HeadSamplePass().process({2048: [a, b, c]}) == {2048: [b, c]}

    def test_tail_pass_drops_files_differing_in_last_bytes(self, tmp_path):
        a = write(tmp_path / "a", b"0" * 2047 + b"X")
        b = write(tmp_path / "b", b"0" * 2047 + b"Y")

        groups = {2048: [a, b]}
        assert HeadSamplePass().process(groups) == groups
        assert TailSamplePass().process(groups) == {}

    def test_middle_difference_survives_weeding(self, tmp_path):
        """Bytes between the two windows are only seen by the full digest."""
        size = 4096
        a = write(tmp_path / "a", b"0" * 2000 + b"X" + b"0" * (size - 2001))
        b = write(tmp_path / "b", b"0" * 2000 + b"Y" + b"0" * (size - 2001))

        assert BoundaryWeedStage().process({size: [a, b]}) == {size: [a, b]}

    def test_tail_offset_computed_from_group_size(self):
        tail = TailSamplePass()
        assert tail.sample_offset(5000) == 5000 - 1024
        assert tail.sample_offset(1024) == 0

    def test_short_files_are_sampled_whole_in_tail_pass(self, tmp_path):
        a = write(tmp_path / "a", b"0" * 80 + b"X" + b"0" * 19)
        b = write(tmp_path / "b", b"0" * 80 + b"Y" + b"0" * 19)

        groups = {100: [a, b]}
        assert HeadSamplePass().process(groups) == groups
        assert TailSamplePass().process(groups) == {}

    def test_zero_size_group_passes_through_without_reads(self, tmp_path):
        a = write(tmp_path / "a", b"")
        b = write(tmp_path / "b", b"")
        hasher = mock.Mock()

        result = BoundaryWeedStage(hasher).process({0: [a, b]})
        assert result == {0: [a, b]}
        hasher.read_sample.assert_not_called()

    def test_read_failure_drops_file(self, tmp_path):
        a = write(tmp_path / "a", b"same")
        b = write(tmp_path / "b", b"same")
        gone = str(tmp_path / "gone")

        assert BoundaryWeedStage().process({4: [a, b, gone]}) == {4: [a, b]}

    def test_disabled_weeding_returns_input(self, tmp_path):
        a = write(tmp_path / "a", b"X")
        b = write(tmp_path / "b", b"Y")
        groups = {1: [a, b]}
        assert BoundaryWeedStage(enabled=False).process(groups) is groups

    def test_progress_counters_per_pass(self, tmp_path):
        a = write(tmp_path / "a", b"same")
        b = write(tmp_path / "b", b"same")
        calls = []
        BoundaryWeedStage().process({4: [a, b]}, progress_callback=lambda *args: calls.append(args))
        assert calls == [(Stage.HEAD.value, 2, 2), (Stage.TAIL.value, 2, 2)]

    def test_output_never_grows(self, test_files, temp_dir):
        from twinfinder.core.scanner import FileScannerImpl
        from twinfinder.core.grouper import FileGrouperImpl

        groups, _ = FileScannerImpl(root_dir=str(temp_dir)).scan()
        weeded = BoundaryWeedStage().process(groups)
        assert FileGrouperImpl.count_files(weeded) <= FileGrouperImpl.count_files(groups)
        for size, paths in weeded.items():
            assert set(paths) <= set(groups[size])
            assert len(paths) >= 2


class TestSequentialDigestStage:
    def test_groups_by_full_content(self, tmp_path):
        a = write(tmp_path / "a", b"same content")
        b = write(tmp_path / "b", b"same content")
        c = write(tmp_path / "c", b"diff content")

        result = SequentialDigestStage().process({12: [c, b, a]})
        assert list(result.values()) == [[a, b]]
        digest = list(result)[0]
        assert len(digest) == 16

    def test_failed_reads_count_as_processed(self, tmp_path):
        a = write(tmp_path / "a", b"same")
        b = write(tmp_path / "b", b"same")
        gone = str(tmp_path / "gone")
        calls = []

        stage = SequentialDigestStage()
        result = stage.process({4: [a, b, gone]}, progress_callback=lambda *args: calls.append(args))

        assert list(result.values()) == [[a, b]]
        assert stage.processed == 3
        assert calls[-1] == (Stage.DIGEST.value, 3, 3)

    def test_respects_read_ceiling(self, tmp_path):
        a = write(tmp_path / "a", b"prefix-1")
        b = write(tmp_path / "b", b"prefix-2")

        assert SequentialDigestStage(HasherImpl(), max_read_bytes=7).process({8: [a, b]}) != {}
        assert SequentialDigestStage(HasherImpl(), max_read_bytes=8).process({8: [a, b]}) == {}

    def test_groups_ordered_by_first_path(self, tmp_path):
        z1 = write(tmp_path / "z1", b"zz")
        z2 = write(tmp_path / "z2", b"zz")
        a1 = write(tmp_path / "a1", b"aa")
        a2 = write(tmp_path / "a2", b"aa")

        result = SequentialDigestStage().process({2: [z1, z2, a1, a2]})
        assert list(result.values()) == [[a1, a2], [z1, z2]]

    def test_cancellation_returns_partial_result(self, tmp_path):
        a = write(tmp_path / "a", b"same")
        b = write(tmp_path / "b", b"same")
        assert SequentialDigestStage().process({4: [a, b]}, stopped_flag=lambda: True) == {}


class TestVerifyStage:
    def test_confirms_true_duplicates(self, tmp_path):
        a = write(tmp_path / "a", b"same")
        b = write(tmp_path / "b", b"same")
        assert VerifyStage().process({"d1": [a, b]}) == {"d1": [a, b]}

    def test_splits_colliding_group(self, tmp_path):
        a1 = write(tmp_path / "a1", b"AAAA")
        a2 = write(tmp_path / "a2", b"AAAA")
        b1 = write(tmp_path / "b1", b"BBBB")
        b2 = write(tmp_path / "b2", b"BBBB")
        lone = write(tmp_path / "c", b"CCCC")

        result = VerifyStage().process({"d": [a1, a2, b1, b2, lone]})
        assert result == {"d": [a1, a2], "d-1": [b1, b2]}

    def test_unreadable_member_is_dropped(self, tmp_path):
        a = write(tmp_path / "a", b"same")
        b = write(tmp_path / "b", b"same")
        gone = str(tmp_path / "gone")
        assert VerifyStage().process({"d": [a, b, gone]}) == {"d": [a, b]}
