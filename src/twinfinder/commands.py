"""
Unified command orchestrator for deduplication.
This is the SINGLE source of truth for business logic used by the CLI and the api module.
"""
from typing import Callable, Optional

from twinfinder.core.deduplicator import DeduplicatorImpl
from twinfinder.core.models import DeduplicationParams, DeduplicationResult


class DeduplicationCommand:
    """
    Orchestrates the entire deduplication workflow:
    1. Run the pipeline with progress and cancellation support
       (the scanner raises RuntimeError for a missing or non-directory root)
    2. Keep the last result for callers that need it later

    Usage:
        params = DeduplicationParams(root_dir="~/Downloads")
        command = DeduplicationCommand()
        result = command.execute(
            params,
            progress_callback=cli_progress_printer,
            stopped_flag=signal_handler_check
        )
    """

    def __init__(self, deduplicator: Optional[DeduplicatorImpl] = None):
        self._deduplicator = deduplicator or DeduplicatorImpl()
        self._result: Optional[DeduplicationResult] = None

    def execute(
            self,
            params: DeduplicationParams,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None,
            stopped_flag: Optional[Callable[[], bool]] = None
    ) -> DeduplicationResult:
        """
        Execute deduplication with given parameters.

        Args:
            params: Validated deduplication parameters
            progress_callback: (stage: str, current: int, total: Optional[int]) -> None
            stopped_flag: () -> bool (returns True if operation should stop)

        Returns:
            DeduplicationResult with digest groups and statistics.
            An empty result is a normal outcome, not an error.

        Raises:
            RuntimeError: If the root directory is missing or not a directory
        """
        self._result = self._deduplicator.find_duplicates(
            params,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback
        )
        return self._result

    def shutdown(self) -> None:
        """Stops a digest pool that is still running; safe to call from a signal handler."""
        self._deduplicator.shutdown()

    @property
    def result(self) -> Optional[DeduplicationResult]:
        return self._result
