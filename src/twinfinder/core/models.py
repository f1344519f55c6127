"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models and domain logic for tree scanning and duplicate detection.
"""

import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

# size -> paths sharing that size
SizeGroups = Dict[int, List[str]]
# hex digest -> paths sharing that digest
DigestGroups = Dict[str, List[str]]

DEFAULT_MAX_READ_BYTES = 1024 ** 3
DEFAULT_MAX_DEPTH = 10
DEFAULT_WORKERS = 10
DEFAULT_QUEUE_DEPTH = 30


# =============================
# Enums
# =============================

class DigestMode(Enum):
    """Execution mode of the full-content digest stage."""
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"

    @property
    def display_name(self) -> str:
        mapping = {
            DigestMode.SEQUENTIAL: "Sequential",
            DigestMode.CONCURRENT: "Concurrent",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


class OutputFormat(Enum):
    HUMAN = "human"
    ROBOT = "robot"


class RemovalPolicy(Enum):
    """How redundant copies are removed once duplicates are known."""
    UNCONDITIONAL = "unconditional"
    INTERACTIVE = "interactive"


class Stage(str, Enum):
    SCAN = "Size grouping"
    HARDLINK = "Hardlink collapse"
    HEAD = "Head sample"
    TAIL = "Tail sample"
    DIGEST = "Full Hash"
    VERIFY = "Byte compare"


class PoolState(Enum):
    UNSTARTED = "unstarted"
    RUNNING = "running"
    DRAINING = "draining"
    JOINED = "joined"


# ======================
#  Core Data Models
# ======================

@dataclass
class FileStat:
    size: int
    device: int
    inode: int
    is_regular: bool
    is_symlink: bool


@dataclass
class FileRecord:
    """
    A file path plus the attributes observed on it.
    Attributes are queried from the filesystem on every call to stat(),
    never cached, so each stage sees the file as it is now.
    """
    path: str

    def stat(self) -> FileStat:
        """Raises OSError when the file vanished or cannot be inspected."""
        st = os.lstat(self.path)
        return FileStat(
            size=st.st_size,
            device=st.st_dev,
            inode=st.st_ino,
            is_regular=stat.S_ISREG(st.st_mode),
            is_symlink=stat.S_ISLNK(st.st_mode),
        )

    @property
    def identity(self) -> Tuple[int, int]:
        """(device, inode) pair naming the underlying file."""
        st = self.stat()
        return st.device, st.inode

    def __repr__(self):
        return f"<FileRecord path={self.path}>"


@dataclass
class DuplicateGroup:
    """
    Files whose full contents share one digest.
    Paths are sorted; the first one is the copy that is kept on removal.
    """
    digest: str
    size: int
    paths: List[str]

    @property
    def duplicate_count(self) -> int:
        """How many redundant copies this group holds."""
        return max(0, len(self.paths) - 1)

    @property
    def keeper(self) -> str:
        return self.paths[0]

    def __repr__(self):
        return f"<DuplicateGroup digest={self.digest}, count={len(self.paths)}>"


class DeduplicationStats:
    """
    Statistics collected during the deduplication process.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.scan_count: int = 0
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}

    def update_stage(
            self,
            stage_name: str,
            groups_found: int,
            files_processed: int,
            duration: float
    ) -> None:
        if stage_name not in self.stage_stats:
            self.stage_stats[stage_name] = {
                "groups": 0,
                "files": 0,
                "time": 0.0
            }
        self.stage_stats[stage_name]["groups"] += groups_found
        self.stage_stats[stage_name]["files"] += files_processed
        self.stage_stats[stage_name]["time"] += duration

    def print_summary(self) -> str:
        lines = [
            "📊 Deduplication Statistics:",
            f"Files scanned: {self.scan_count}",
            f"Total Execution Time: {self.total_time:.3f}s\n",
            "Stage: GROUPS / FILES / TIME"
        ]

        for stage_name, data in self.stage_stats.items():
            lines.append(f"{stage_name}: {data['groups']} / {data['files']} / {data['time']:.3f}s")

        return "\n".join(lines)


@dataclass
class DeduplicationResult:
    """
    Outcome of one pipeline run.
    `terminated_at` names the stage after which nothing was left to compare,
    or None when the digest stage ran to the end.
    """
    groups: DigestGroups
    stats: DeduplicationStats
    terminated_at: Optional[Stage] = None
    cancelled: bool = False

    @property
    def duplicate_count(self) -> int:
        return sum(len(paths) - 1 for paths in self.groups.values())

    def __bool__(self):
        return bool(self.groups)


"""
DTO for deduplication parameters with built-in validation.
Interface-agnostic, filled in by the CLI.
"""

@dataclass
class DeduplicationParams:
    """Parameters for one deduplication run with validation."""
    root_dir: str
    max_read_bytes: int = DEFAULT_MAX_READ_BYTES
    max_depth: int = DEFAULT_MAX_DEPTH
    follow_symlinks: bool = False
    mode: DigestMode = DigestMode.CONCURRENT
    workers: int = DEFAULT_WORKERS
    queue_depth: int = DEFAULT_QUEUE_DEPTH
    weed: bool = True
    verify: bool = False
    output_format: OutputFormat = field(default=OutputFormat.HUMAN)

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if not self.root_dir:
            raise ValueError("Root directory cannot be empty")

        if self.follow_symlinks:
            raise ValueError("Following symbolic links is not supported")

        if self.max_read_bytes < 0:
            raise ValueError("Maximum read size cannot be negative")

        if self.max_depth < 0:
            raise ValueError("Maximum depth cannot be negative")

        if self.workers < 1:
            raise ValueError("Worker count must be at least 1")

        if self.queue_depth < 1:
            raise ValueError("Queue depth must be at least 1")
