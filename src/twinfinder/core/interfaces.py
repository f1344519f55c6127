"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the duplicate detection pipeline.
These protocols enforce structural typing using Python's `typing.Protocol` to keep
stages interchangeable (e.g. sequential vs. concurrent digest engines).

Key Components:
---------------
- HashAlgorithm: Streaming hash function producing a fixed-width hex digest.
- Hasher: Reads boundary samples and bounded full-content digests of files.
- FileScanner: Walks a directory tree and buckets regular files by size.
- GroupStage: A pipeline stage turning one size grouping into a smaller one.
- DigestEngine: Final stage turning size groups into digest groups.
"""

from typing import Protocol, Optional, Callable, Tuple, Any
from twinfinder.core.models import SizeGroups, DigestGroups

ProgressCallback = Callable[[str, int, Optional[int]], None]
StoppedFlag = Callable[[], bool]


class HashAlgorithm(Protocol):
    """
    Interface for streaming hash algorithms.

    Allows plugging in a different fast hash (xxh3, xxh128, ...) without
    affecting the rest of the pipeline.
    """

    def new(self) -> Any:
        """Returns a fresh hash object exposing update() and hexdigest()."""
        ...


class Hasher(Protocol):
    """Interface for reading samples and digests of files."""

    def read_sample(self, path: str, offset: int, length: int) -> Optional[bytes]: ...

    def compute_digest(self, path: str, max_bytes: int) -> Optional[str]: ...


class FileScanner(Protocol):
    """
    Interface for scanning file systems and collecting size groups.
    """
    def scan(
        self,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Tuple[SizeGroups, int]:
        """
        Scan files from the configured directory.

        Returns:
            (size groups with 2+ members, number of regular files observed)
        """
        ...


class GroupStage(Protocol):
    """
    Interface for a stage that prunes a size grouping.
    Output never holds more files than input and every group has 2+ members.
    """

    def process(
        self,
        groups: SizeGroups,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> SizeGroups:
        ...


class DigestEngine(Protocol):
    """
    Interface for the full-content digest stage.

    Returns digest groups sorted internally and ordered by their first path.
    """

    def process(
        self,
        groups: SizeGroups,
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DigestGroups:
        ...
