"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

deduplicator.py
Implements the pipeline that turns a directory tree into duplicate groups:
    size → hardlink collapse → head sample → tail sample → full digest [→ byte compare]

Each stage only ever shrinks the candidate set. When a stage leaves nothing to
compare, the run ends there; that is a normal outcome, not an error.
"""
import logging
import time
from typing import Callable, Optional

from twinfinder.core.grouper import FileGrouperImpl
from twinfinder.core.hasher import HasherImpl
from twinfinder.core.interfaces import DigestEngine, Hasher, ProgressCallback, StoppedFlag
from twinfinder.core.models import (
    DeduplicationParams,
    DeduplicationResult,
    DeduplicationStats,
    DigestMode,
    Stage,
)
from twinfinder.core.pool import DigestWorkerPool
from twinfinder.core.scanner import FileScannerImpl
from twinfinder.core.stages import (
    BoundaryWeedStage,
    HardlinkStage,
    SequentialDigestStage,
    VerifyStage,
)

logger = logging.getLogger(__name__)


# =============================
# Main Deduplicator Class
# =============================
class DeduplicatorImpl:
    """
    Runs every stage in order, collects per-stage statistics and stops early
    as soon as a stage produces an empty grouping.
    """

    def __init__(self, hasher: Optional[Hasher] = None,
                 engine_factory: Optional[Callable[[DeduplicationParams], DigestEngine]] = None):
        self.hasher = hasher or HasherImpl()
        self.engine_factory = engine_factory or self.build_engine
        self.engine: Optional[DigestEngine] = None

    def build_engine(self, params: DeduplicationParams) -> DigestEngine:
        """Creates the digest engine matching the configured mode."""
        if params.mode == DigestMode.SEQUENTIAL:
            return SequentialDigestStage(self.hasher, max_read_bytes=params.max_read_bytes)
        return DigestWorkerPool(
            workers=params.workers,
            queue_depth=params.queue_depth,
            max_read_bytes=params.max_read_bytes,
            hasher=self.hasher,
        )

    def find_duplicates(
        self,
        params: DeduplicationParams,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DeduplicationResult:
        """
        Main pipeline.
        Args:
            params: Validated run configuration
            stopped_flag: Function that returns True if the run should stop
            progress_callback: Reports progress per stage (stage, current, total)
        Returns:
            DeduplicationResult holding digest groups and statistics
        """
        stats = DeduplicationStats()
        self.engine = None
        total_start_time = time.time()

        def finish(groups, terminated_at=None) -> DeduplicationResult:
            stats.total_time = time.time() - total_start_time
            cancelled = bool(stopped_flag and stopped_flag()) or getattr(self.engine, "cancelled", False)
            if terminated_at is not None:
                logger.info(f"No duplicates left after stage: {terminated_at.value}")
            return DeduplicationResult(
                groups=groups, stats=stats, terminated_at=terminated_at, cancelled=cancelled
            )

        # Stage 1: size grouping
        scanner = FileScannerImpl(
            root_dir=params.root_dir,
            max_depth=params.max_depth,
            max_read_bytes=params.max_read_bytes,
            follow_symlinks=params.follow_symlinks,
        )
        start_time = time.time()
        groups, stats.scan_count = scanner.scan(stopped_flag, progress_callback)
        self._update_stats(stats, Stage.SCAN, start_time, groups)
        if not groups:
            return finish({}, Stage.SCAN)

        # Stage 2: hardlink collapse
        start_time = time.time()
        groups = HardlinkStage().process(groups, stopped_flag, progress_callback)
        self._update_stats(stats, Stage.HARDLINK, start_time, groups)
        if not groups:
            return finish({}, Stage.HARDLINK)

        # Stage 3: boundary weeding
        if params.weed:
            weeder = BoundaryWeedStage(self.hasher)
            start_time = time.time()
            groups = weeder.head_pass.process(groups, stopped_flag, progress_callback)
            self._update_stats(stats, Stage.HEAD, start_time, groups)
            if not groups:
                return finish({}, Stage.HEAD)

            start_time = time.time()
            groups = weeder.tail_pass.process(groups, stopped_flag, progress_callback)
            self._update_stats(stats, Stage.TAIL, start_time, groups)
            if not groups:
                return finish({}, Stage.TAIL)

        # Stage 4: full content digest
        self.engine = self.engine_factory(params)
        start_time = time.time()
        digest_groups = self.engine.process(groups, stopped_flag, progress_callback)
        self._update_stats(stats, Stage.DIGEST, start_time, digest_groups)
        if not digest_groups:
            return finish({}, Stage.DIGEST)

        # Optional: byte-for-byte confirmation
        if params.verify:
            start_time = time.time()
            digest_groups = VerifyStage().process(digest_groups, stopped_flag, progress_callback)
            self._update_stats(stats, Stage.VERIFY, start_time, digest_groups)
            if not digest_groups:
                return finish({}, Stage.VERIFY)

        return finish(digest_groups)

    def shutdown(self) -> None:
        """Stops a running concurrent engine; no-op for other engines."""
        if isinstance(self.engine, DigestWorkerPool):
            self.engine.shutdown()

    @staticmethod
    def _update_stats(stats: DeduplicationStats, stage: Stage, start_time: float, groups) -> None:
        stats.update_stage(
            stage_name=stage.value,
            groups_found=len(groups),
            files_processed=FileGrouperImpl.count_files(groups),
            duration=time.time() - start_time
        )
