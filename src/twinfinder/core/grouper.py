"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Grouping helpers shared by all pipeline stages: partition by a computed key,
drop groups that cannot hold duplicates, and put digest groups in a stable order.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List

from twinfinder.core.models import DigestGroups, SizeGroups

logger = logging.getLogger(__name__)


class FileGrouperImpl:
    """
    Partitions paths by a computed key.
    A key function returning None marks the path as unreadable; it is dropped.
    """

    @staticmethod
    def group_by(paths: Iterable[str], key_func: Callable[[str], Any]) -> Dict[Any, List[str]]:
        """
        Groups paths by any computed key, preserving input order inside each group.
        Groups with fewer than 2 paths are dropped.
        """
        groups = defaultdict(list)
        skipped = 0
        for path in paths:
            key = key_func(path)
            if key is None:
                skipped += 1
                continue
            groups[key].append(path)

        if skipped:
            logger.debug(f"Skipped {skipped} unreadable files")

        return FileGrouperImpl.prune(groups)

    @staticmethod
    def prune(groups: Dict[Any, List[str]]) -> Dict[Any, List[str]]:
        """Drops every group with fewer than 2 members."""
        return {key: paths for key, paths in groups.items() if len(paths) >= 2}

    @staticmethod
    def count_files(groups: Dict[Any, List[str]]) -> int:
        return sum(len(paths) for paths in groups.values())

    @staticmethod
    def order_size_groups(groups: SizeGroups) -> SizeGroups:
        """Sorts paths inside each size group; groups ordered by size."""
        return {size: sorted(groups[size]) for size in sorted(groups)}

    @staticmethod
    def order_digest_groups(groups: DigestGroups) -> DigestGroups:
        """
        Sorts paths inside each group, then orders groups by their first
        (smallest) path so the output is deterministic.
        """
        sorted_groups = [(digest, sorted(paths)) for digest, paths in groups.items() if len(paths) >= 2]
        sorted_groups.sort(key=lambda item: item[1][0])
        return dict(sorted_groups)
