"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Implements the tree scanner: the first and cheapest pipeline stage.
Features:
- Uses os.walk with in-place pruning of subdirectories past the depth limit
- Skips symbolic links and non-regular files
- Buckets regular files by size and drops sizes held by a single file
"""

import os
import time
import logging
from collections import defaultdict
from pathlib import Path
from typing import Optional, Tuple

from twinfinder.core.grouper import FileGrouperImpl
from twinfinder.core.interfaces import FileScanner, ProgressCallback, StoppedFlag
from twinfinder.core.models import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_READ_BYTES,
    FileRecord,
    SizeGroups,
    Stage,
)

logger = logging.getLogger(__name__)


class FileScannerImpl(FileScanner):
    """
    Walks a directory tree and buckets regular files by size.

    Attributes:
        root_dir: Root directory to scan (depth 0)
        max_depth: Deepest directory level descended into
        max_read_bytes: Read ceiling of the digest stage, used to report oversized candidates
        follow_symlinks: Reserved; must be False
    """

    def __init__(
        self,
        root_dir: str,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_read_bytes: int = DEFAULT_MAX_READ_BYTES,
        follow_symlinks: bool = False
    ):
        if follow_symlinks:
            raise ValueError("Following symbolic links is not supported")
        if max_depth < 0:
            raise ValueError("Maximum depth cannot be negative")
        self.root_dir = root_dir
        self.max_depth = max_depth
        self.max_read_bytes = max_read_bytes
        self.scan_count = 0
        self.oversized_count = 0

    def scan(self,
             stopped_flag: Optional[StoppedFlag] = None,
             progress_callback: Optional[ProgressCallback] = None) -> Tuple[SizeGroups, int]:
        """
        Single-pass scanner with progress updates and debug logging.
        Returns the pruned size groups and the number of regular files observed.
        """
        logger.debug("Starting scan operation")
        logger.debug(f"Root directory: {self.root_dir}, max depth: {self.max_depth}")

        root_path = Path(self.root_dir)
        self.scan_count = 0
        self.oversized_count = 0

        if not root_path.exists():
            error_msg = f"Directory does not exist: {self.root_dir}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)
        if not root_path.is_dir():
            error_msg = f"Not a directory: {self.root_dir}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)

        if stopped_flag and stopped_flag():
            logger.debug("Scan cancelled before start")
            return {}, 0

        # Progress throttling: update every N files to reduce output overhead
        progress_interval = 5000
        progress_counter = 0

        by_size = defaultdict(list)
        root = str(root_path)
        root_depth = root.rstrip(os.sep).count(os.sep)
        start_time = time.time()

        for current, dirs, files in os.walk(root, onerror=self._on_walk_error):
            if stopped_flag and stopped_flag():
                logger.debug("Scan interrupted")
                break

            depth = current.rstrip(os.sep).count(os.sep) - root_depth
            if depth >= self.max_depth:
                # Do not descend past the configured depth
                dirs[:] = []

            for filename in files:
                path = os.path.join(current, filename)
                size = self._regular_file_size(path)
                if size is None:
                    continue
                by_size[size].append(path)
                self.scan_count += 1
                progress_counter += 1

                if progress_callback and progress_counter >= progress_interval:
                    progress_callback(Stage.SCAN.value, self.scan_count, None)
                    progress_counter = 0

        if progress_callback and progress_counter > 0:
            progress_callback(Stage.SCAN.value, self.scan_count, None)

        groups = FileGrouperImpl.order_size_groups(FileGrouperImpl.prune(by_size))
        self.oversized_count = sum(
            len(paths) for size, paths in groups.items() if size > self.max_read_bytes
        )
        if self.oversized_count:
            logger.info(
                f"{self.oversized_count} candidates exceed the read ceiling of "
                f"{self.max_read_bytes} bytes and are compared on their leading bytes only"
            )

        elapsed_time = time.time() - start_time
        logger.debug(f"Total scan time: {elapsed_time:.2f} seconds")
        logger.debug(
            f"Scan completed. {self.scan_count} files observed, "
            f"{FileGrouperImpl.count_files(groups)} share a size with another file."
        )
        return groups, self.scan_count

    @staticmethod
    def _on_walk_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable directory: {error}")

    @staticmethod
    def _regular_file_size(path: str) -> Optional[int]:
        """
        Returns the size of a regular file, or None for links, special files
        and entries that cannot be inspected.
        """
        try:
            file_stat = FileRecord(path).stat()
        except OSError as e:
            logger.debug(f"Could not get size of {path}: {e}")
            return None

        if file_stat.is_symlink:
            logger.debug(f"Skipping symbolic link: {path}")
            return None
        if not file_stat.is_regular:
            logger.debug(f"Skipping non-regular file: {path}")
            return None
        return file_stat.size
