"""
twinfinder — fast duplicate file finder for large trees.

Core features:
- Size → hardlink → head/tail sample → full hash elimination pipeline
- Sequential or concurrent (bounded worker pool) full-content hashing
- Optional byte-by-byte confirmation of every group
- Safe deletion to system trash (via send2trash), permanent deletion on request
- CLI interface for headless/server usage
"""

try:
    from importlib.metadata import PackageNotFoundError, version as _version
    __version__ = _version("twinfinder")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

# Public API: only what users should import directly
from twinfinder.commands import DeduplicationCommand
from twinfinder.core import (
    DeduplicationParams, DeduplicationResult, DigestMode, DuplicateGroup, OutputFormat, RemovalPolicy)
from twinfinder.utils.convert_utils import ConvertUtils
from twinfinder.services import DuplicateService, FileService, ReportService

__all__ = [
    "DeduplicationCommand",
    "DeduplicationParams",
    "DeduplicationResult",
    "DigestMode",
    "DuplicateGroup",
    "OutputFormat",
    "RemovalPolicy",
    "ConvertUtils",
    "DuplicateService",
    "FileService",
    "ReportService",
    "__version__",
]
