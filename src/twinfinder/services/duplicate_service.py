"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/duplicate_service.py
Turns digest groups into removal decisions and carries them out.
The first path of every (already sorted) group is the one that is kept.
"""
import logging
from typing import Callable, List, Optional

from twinfinder.core.models import DigestGroups, RemovalPolicy
from twinfinder.services.file_service import FileService

logger = logging.getLogger(__name__)


class DuplicateService:
    @staticmethod
    def count_duplicates(groups: DigestGroups) -> int:
        """Number of redundant copies: sum of (members - 1) over all groups."""
        return sum(max(0, len(paths) - 1) for paths in groups.values())

    @staticmethod
    def files_to_remove(groups: DigestGroups) -> List[str]:
        """
        Keeps the first file per group and returns the rest, group by group.
        """
        files_to_delete = []
        for paths in groups.values():
            files_to_delete.extend(paths[1:])
        return files_to_delete

    @staticmethod
    def remove_duplicates(
            groups: DigestGroups,
            policy: RemovalPolicy = RemovalPolicy.UNCONDITIONAL,
            confirm: Optional[Callable[[str], bool]] = None,
            permanent: bool = False,
            on_error: Optional[Callable[[str, Exception], None]] = None,
            on_removed: Optional[Callable[[str], None]] = None,
    ) -> int:
        """
        Removes every file but the first of each group.

        Args:
            groups: Digest groups, already sorted
            policy: UNCONDITIONAL removes straight away, INTERACTIVE asks confirm(path) first
            confirm: Per-file confirmation, required for INTERACTIVE
            permanent: Unlink instead of moving to the system trash
            on_error: Called with (path, error) for every failed removal
            on_removed: Called with the path of every removed file

        Returns:
            Number of files actually removed
        """
        if policy == RemovalPolicy.INTERACTIVE and confirm is None:
            raise ValueError("Interactive removal needs a confirmation callback")

        removed = 0
        for path in DuplicateService.files_to_remove(groups):
            if policy == RemovalPolicy.INTERACTIVE and not confirm(path):
                logger.debug(f"Kept {path} (not confirmed)")
                continue
            try:
                FileService.remove(path, permanent=permanent)
            except RuntimeError as e:
                logger.warning(f"Failed to delete {path}: {e}")
                if on_error:
                    on_error(path, e)
                continue
            removed += 1
            if on_removed:
                on_removed(path)
        return removed
