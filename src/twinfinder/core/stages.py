"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/stages.py
Pipeline stages between the tree scanner and the final report.

CLASS HIERARCHY
---------------
HardlinkStage          : Collapses paths naming the same inode into one representative
SamplePassBase         : Shared re-partitioning logic of the two boundary sample passes
HeadSamplePass         : First HEAD_SAMPLE_SIZE bytes of every candidate
TailSamplePass         : Last TAIL_SAMPLE_SIZE bytes, offset taken from the group's size key
BoundaryWeedStage      : Runs both passes (or nothing when weeding is disabled)
SequentialDigestStage  : Single-threaded full-content digest engine
VerifyStage            : Optional byte-for-byte confirmation of digest groups

STAGE CONTRACTS
---------------
Each stage implements a consistent `process()` interface that:
  • Accepts the grouping produced by the previous stage
  • Returns a new grouping holding no more files than its input
  • Drops every group left with fewer than 2 members
  • Reports progress via callback (stage name, processed count, total count)
  • Respects cancellation via stopped_flag callback
"""

import filecmp
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from twinfinder.core.grouper import FileGrouperImpl
from twinfinder.core.hasher import HasherImpl
from twinfinder.core.interfaces import (
    DigestEngine,
    GroupStage,
    Hasher,
    ProgressCallback,
    StoppedFlag,
)
from twinfinder.core.models import (
    DEFAULT_MAX_READ_BYTES,
    DigestGroups,
    FileRecord,
    SizeGroups,
    Stage,
)

logger = logging.getLogger(__name__)

HEAD_SAMPLE_SIZE = 64
TAIL_SAMPLE_SIZE = 1024


# =============================
# Hardlink collapsing
# =============================
class HardlinkStage(GroupStage):
    """
    Keeps one path per (device, inode) identity inside every size group.
    The surviving representative is the lexicographically smallest name.
    """

    def process(
        self,
        groups: SizeGroups,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> SizeGroups:
        result = {}
        total_files = FileGrouperImpl.count_files(groups)
        processed_files = 0

        for size, paths in groups.items():
            if stopped_flag and stopped_flag():
                return result

            slots: Dict[Tuple[int, int], str] = {}
            # Descending order: smaller names come later and overwrite the slot
            for path in sorted(paths, reverse=True):
                try:
                    identity = FileRecord(path).identity
                except OSError as e:
                    logger.debug(f"Could not stat {path}: {e}")
                    continue
                slots[identity] = path

            if len(slots) >= 2:
                result[size] = sorted(slots.values())

            processed_files += len(paths)
            if progress_callback:
                progress_callback(Stage.HARDLINK.value, processed_files, total_files)

        return result


# =============================
# Boundary weeding
# =============================
class SamplePassBase:
    """
    Re-partitions every size group by a sample of its members' bytes.
    Sub-partitions of one file are dropped and the rest are flattened back
    into the size group. The size 0 group has nothing to sample and passes through.
    """
    stage = Stage.HEAD
    sample_size = HEAD_SAMPLE_SIZE

    def __init__(self, hasher: Optional[Hasher] = None):
        self.hasher = hasher or HasherImpl()

    def sample_offset(self, size: int) -> int:
        raise NotImplementedError

    def process(
        self,
        groups: SizeGroups,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> SizeGroups:
        result = {}
        total_files = FileGrouperImpl.count_files(groups)
        processed_files = 0

        for size, paths in groups.items():
            if stopped_flag and stopped_flag():
                return result

            if size == 0:
                result[size] = list(paths)
            else:
                offset = self.sample_offset(size)
                partitions = FileGrouperImpl.group_by(
                    paths,
                    lambda p: self.hasher.read_sample(p, offset, self.sample_size)
                )
                survivors = sorted(p for members in partitions.values() for p in members)
                if len(survivors) >= 2:
                    result[size] = survivors

            processed_files += len(paths)
            if progress_callback:
                progress_callback(self.stage.value, processed_files, total_files)

        return result


class HeadSamplePass(SamplePassBase):
    stage = Stage.HEAD
    sample_size = HEAD_SAMPLE_SIZE

    def sample_offset(self, size: int) -> int:
        return 0


class TailSamplePass(SamplePassBase):
    stage = Stage.TAIL
    sample_size = TAIL_SAMPLE_SIZE

    def sample_offset(self, size: int) -> int:
        # Files shorter than the window are sampled whole
        return max(0, size - self.sample_size)


class BoundaryWeedStage(GroupStage):
    """Head pass followed by tail pass; a pass-through when disabled."""

    def __init__(self, hasher: Optional[Hasher] = None, enabled: bool = True):
        self.enabled = enabled
        self.head_pass = HeadSamplePass(hasher)
        self.tail_pass = TailSamplePass(hasher)

    def process(
        self,
        groups: SizeGroups,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> SizeGroups:
        if not self.enabled:
            return groups
        groups = self.head_pass.process(groups, stopped_flag, progress_callback)
        if not groups:
            return groups
        return self.tail_pass.process(groups, stopped_flag, progress_callback)


# =============================
# Digest engines
# =============================
class SequentialDigestStage(DigestEngine):
    """Hashes every candidate one after another on the calling thread."""

    def __init__(self, hasher: Optional[Hasher] = None, max_read_bytes: int = DEFAULT_MAX_READ_BYTES):
        self.hasher = hasher or HasherImpl()
        self.max_read_bytes = max_read_bytes
        self.processed = 0

    def process(
        self,
        groups: SizeGroups,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DigestGroups:
        digests = defaultdict(list)
        total_files = FileGrouperImpl.count_files(groups)
        self.processed = 0

        for paths in groups.values():
            for path in paths:
                if stopped_flag and stopped_flag():
                    return FileGrouperImpl.order_digest_groups(digests)

                digest = self.hasher.compute_digest(path, self.max_read_bytes)
                if digest is not None:
                    digests[digest].append(path)
                # Failed reads still count so progress totals stay consistent
                self.processed += 1

                if progress_callback:
                    progress_callback(Stage.DIGEST.value, self.processed, total_files)

        return FileGrouperImpl.order_digest_groups(digests)


class VerifyStage:
    """
    Splits digest groups by byte-for-byte comparison.
    A digest group that turns out to hold several distinct contents yields
    one group per content; the extra ones are keyed "<digest>-<n>".
    """

    def process(
        self,
        groups: DigestGroups,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DigestGroups:
        result = {}
        total_files = FileGrouperImpl.count_files(groups)
        processed_files = 0

        for digest, paths in groups.items():
            if stopped_flag and stopped_flag():
                break

            partitions: List[List[str]] = []
            for path in paths:
                for members in partitions:
                    if self._same_content(members[0], path):
                        members.append(path)
                        break
                else:
                    partitions.append([path])

            kept = [members for members in partitions if len(members) >= 2]
            if len(partitions) > 1:
                logger.warning(f"Digest {digest} covers {len(partitions)} distinct contents")
            for index, members in enumerate(kept):
                key = digest if index == 0 else f"{digest}-{index}"
                result[key] = members

            processed_files += len(paths)
            if progress_callback:
                progress_callback(Stage.VERIFY.value, processed_files, total_files)

        return FileGrouperImpl.order_digest_groups(result)

    @staticmethod
    def _same_content(first: str, second: str) -> bool:
        try:
            return filecmp.cmp(first, second, shallow=False)
        except OSError as e:
            logger.debug(f"Could not compare {first} and {second}: {e}")
            return False
