"""
Core duplicate detection engine — scanner, stages, digest engines and pipeline orchestrator.

This package contains the performance-critical foundation of twinfinder:
- FileScannerImpl: depth-limited directory traversal bucketing files by size
- HardlinkStage / BoundaryWeedStage: cheap eliminations before any full read
- HasherImpl + XXHashAlgorithmImpl: xxHash64-based sampling and bounded full digests
- SequentialDigestStage / DigestWorkerPool: sequential and concurrent digest engines
- DeduplicatorImpl: the multi-stage pipeline (size → hardlinks → samples → digest)
- Models: FileRecord, DuplicateGroup, and configuration objects

All components are pure Python with no UI dependencies.
"""

from .scanner import FileScannerImpl
from .grouper import FileGrouperImpl
from .hasher import HasherImpl, XXHashAlgorithmImpl
from .stages import (
    HardlinkStage, BoundaryWeedStage, HeadSamplePass, TailSamplePass,
    SequentialDigestStage, VerifyStage, HEAD_SAMPLE_SIZE, TAIL_SAMPLE_SIZE)
from .pool import DigestWorkerPool, WorkQueue
from .deduplicator import DeduplicatorImpl
from .models import (
    FileRecord, DuplicateGroup, DigestMode, OutputFormat, RemovalPolicy, PoolState, Stage,
    DeduplicationParams, DeduplicationStats, DeduplicationResult, SizeGroups, DigestGroups)

__all__ = [
    "FileScannerImpl",
    "FileGrouperImpl",
    "HasherImpl",
    "XXHashAlgorithmImpl",
    "HardlinkStage",
    "BoundaryWeedStage",
    "HeadSamplePass",
    "TailSamplePass",
    "SequentialDigestStage",
    "VerifyStage",
    "HEAD_SAMPLE_SIZE",
    "TAIL_SAMPLE_SIZE",
    "DigestWorkerPool",
    "WorkQueue",
    "DeduplicatorImpl",
    "FileRecord",
    "DuplicateGroup",
    "DigestMode",
    "OutputFormat",
    "RemovalPolicy",
    "PoolState",
    "Stage",
    "DeduplicationParams",
    "DeduplicationStats",
    "DeduplicationResult",
    "SizeGroups",
    "DigestGroups",
]
