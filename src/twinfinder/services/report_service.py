"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/report_service.py
Renders digest groups for people (human) or for scripts (robot).

Robot format: one line per file, tab separated
    <digest>\t<size>\t<path>
with groups separated by an empty line.
"""
import logging
from typing import Callable, List, Optional

from twinfinder.core.models import DigestGroups, DuplicateGroup, FileRecord, OutputFormat
from twinfinder.utils.convert_utils import ConvertUtils

logger = logging.getLogger(__name__)


class ReportService:
    @staticmethod
    def group_size(paths: List[str]) -> int:
        """Size of any still present member; -1 when none can be inspected."""
        for path in paths:
            try:
                return FileRecord(path).stat().size
            except OSError as e:
                logger.debug(f"Could not stat {path}: {e}")
        return -1

    @staticmethod
    def build_groups(groups: DigestGroups) -> List[DuplicateGroup]:
        """Wraps a digest mapping into DuplicateGroup objects, keeping its order."""
        return [
            DuplicateGroup(digest=digest, size=ReportService.group_size(paths), paths=list(paths))
            for digest, paths in groups.items()
        ]

    @staticmethod
    def render_human(groups: List[DuplicateGroup]) -> List[str]:
        if not groups:
            return ["No duplicate groups found."]

        total_files = sum(len(g.paths) for g in groups)
        lines = [f"Found {len(groups)} duplicate groups ({total_files} files)"]
        for idx, group in enumerate(groups, 1):
            size_str = ConvertUtils.bytes_to_human(group.size) if group.size >= 0 else "?"
            lines.append("")
            lines.append(f"📁 Group {idx} | Size: {size_str} | Files: {len(group.paths)} | Digest: {group.digest}")
            for path in group.paths:
                lines.append(f"   {path}")
        return lines

    @staticmethod
    def render_robot(groups: List[DuplicateGroup]) -> List[str]:
        lines = []
        for idx, group in enumerate(groups):
            if idx:
                lines.append("")
            for path in group.paths:
                lines.append(f"{group.digest}\t{group.size}\t{path}")
        return lines

    @classmethod
    def report(
            cls,
            groups: DigestGroups,
            output_format: OutputFormat = OutputFormat.HUMAN,
            write: Optional[Callable[[str], None]] = None
    ) -> int:
        """
        Writes every group through `write` (print by default).
        Returns:
            Total duplicate count: sum of (members - 1) over all groups
        """
        write = write or print
        duplicate_groups = cls.build_groups(groups)

        if output_format == OutputFormat.ROBOT:
            lines = cls.render_robot(duplicate_groups)
        else:
            lines = cls.render_human(duplicate_groups)

        for line in lines:
            write(line)
        return sum(group.duplicate_count for group in duplicate_groups)
