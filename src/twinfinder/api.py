"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

api.py

Stage-level programming interface. Each function runs one pipeline stage
on its own so callers can compose, inspect or test the stages separately:
- scan: size buckets of regular files under a tree
- collapse_hardlinks: one path per (device, inode)
- weed: head/tail boundary samples
- digest: full-content digest, sequential or on a worker pool
- remove: delete all but the first file of every group

DeduplicationCommand runs the same stages end to end with statistics.
"""
import logging
from typing import Callable, Optional, Tuple

from twinfinder.core.hasher import HasherImpl
from twinfinder.core.interfaces import Hasher, ProgressCallback, StoppedFlag
from twinfinder.core.models import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_READ_BYTES,
    DEFAULT_QUEUE_DEPTH,
    DEFAULT_WORKERS,
    DigestGroups,
    DigestMode,
    RemovalPolicy,
    SizeGroups,
)
from twinfinder.core.pool import DigestWorkerPool
from twinfinder.core.scanner import FileScannerImpl
from twinfinder.core.stages import BoundaryWeedStage, HardlinkStage, SequentialDigestStage
from twinfinder.services.duplicate_service import DuplicateService

logger = logging.getLogger(__name__)


def scan(
    root: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_read_bytes: int = DEFAULT_MAX_READ_BYTES,
    follow_symlinks: bool = False,
    stopped_flag: Optional[StoppedFlag] = None,
    progress_callback: Optional[ProgressCallback] = None
) -> Tuple[SizeGroups, int]:
    """Returns (size groups with 2+ members, number of regular files observed)."""
    scanner = FileScannerImpl(
        root_dir=root,
        max_depth=max_depth,
        max_read_bytes=max_read_bytes,
        follow_symlinks=follow_symlinks,
    )
    return scanner.scan(stopped_flag, progress_callback)


def collapse_hardlinks(groups: SizeGroups) -> SizeGroups:
    return HardlinkStage().process(groups)


def weed(
    groups: SizeGroups,
    enabled: bool = True,
    hasher: Optional[Hasher] = None,
    progress_callback: Optional[ProgressCallback] = None
) -> SizeGroups:
    return BoundaryWeedStage(hasher, enabled=enabled).process(groups, progress_callback=progress_callback)


def digest(
    groups: SizeGroups,
    mode: DigestMode = DigestMode.CONCURRENT,
    workers: int = DEFAULT_WORKERS,
    queue_depth: int = DEFAULT_QUEUE_DEPTH,
    max_read_bytes: int = DEFAULT_MAX_READ_BYTES,
    hasher: Optional[Hasher] = None,
    stopped_flag: Optional[StoppedFlag] = None,
    progress_callback: Optional[ProgressCallback] = None
) -> DigestGroups:
    """
    Full-content digest of every candidate.
    workers and queue_depth apply to concurrent mode only.
    Both modes return identical groups for the same input.
    """
    hasher = hasher or HasherImpl()
    if mode == DigestMode.SEQUENTIAL:
        engine = SequentialDigestStage(hasher, max_read_bytes=max_read_bytes)
    else:
        engine = DigestWorkerPool(
            workers=workers,
            queue_depth=queue_depth,
            max_read_bytes=max_read_bytes,
            hasher=hasher,
            stopped_flag=stopped_flag,
        )
    return engine.process(groups, stopped_flag, progress_callback)


def remove(
    groups: DigestGroups,
    policy: RemovalPolicy = RemovalPolicy.UNCONDITIONAL,
    confirm: Optional[Callable[[str], bool]] = None,
    permanent: bool = False
) -> int:
    """Keeps the first path of every group; returns the number of files removed."""
    return DuplicateService.remove_duplicates(groups, policy=policy, confirm=confirm, permanent=permanent)
