"""Change log rendering and writing."""

import datetime
import json
import logging
import os
import sys
from pathlib import Path
from typing import TextIO

from ..reconcile.report import ChangeReport, ChangedEntry
from ..snapshot.record import Snapshot

logger = logging.getLogger(__name__)

LOG_FILE_PREFIX = 'changes-'
LOG_FILE_SUFFIX = '.log'
NO_CHANGES_MESSAGE = 'no changes detected'
UNVERIFIABLE_MESSAGE = 'metadata changed, content unverifiable'


def log_file_name(timestamp: datetime.datetime) -> str:
    """Sortable log file name for a cycle that ended at timestamp."""
    timestamp = timestamp.astimezone(datetime.UTC)
    return f"{LOG_FILE_PREFIX}{timestamp:%Y%m%dT%H%M%S%f}Z{LOG_FILE_SUFFIX}"


def _describe_changed(entry: ChangedEntry) -> str:
    details = [difference.description() for difference in entry.differences]
    if not entry.verified:
        details.append(UNVERIFIABLE_MESSAGE)
    elif entry.content_changed:
        details.append(f"content: {entry.old_hash} -> {entry.new_hash}")
    return f"[Changed] {entry.path}: {'; '.join(details)}"


def render_report(report: ChangeReport) -> list[str]:
    """Render every entry of a report as `[Category] <details>` lines.

    Order: moves, additions, removals, changes, then duplicate groups.
    """
    lines = []

    for entry in report.moved:
        lines.append(f"[Moved] {entry.source.path} -> {entry.destination.path}")

    for record in report.added:
        lines.append(f"[Added] {record.path}")

    for record in report.removed:
        lines.append(f"[Removed] {record.path}")

    for entry in report.changed:
        lines.append(_describe_changed(entry))

    for group in report.duplicate_groups:
        lines.append(f"[Duplicate] {group.content_hash}: {', '.join(group.paths)}")

    return lines


def render_snapshot(snapshot: Snapshot) -> list[str]:
    """One JSON object per record, in snapshot order."""
    return [json.dumps(record.to_dict(), ensure_ascii=False) for record in snapshot]


class ChangeReporter:
    """Writes change reports to per-cycle log files and mirrors them to the console."""

    def __init__(self, log_directory: str | os.PathLike, output: TextIO | None = None):
        """Initialize the reporter.

        Args:
            log_directory: Directory receiving one changes-<timestamp>.log file per
                           cycle that found changes; created on first use
            output: Console stream, defaults to sys.stdout at report time
        """
        self.log_directory = Path(log_directory)
        self._output = output

    def report(self, report: ChangeReport, snapshot: Snapshot,
               timestamp: datetime.datetime | None = None) -> Path | None:
        """Write report and the snapshot it was computed against.

        Returns:
            Path of the log file written, or None when the report has no changes
        """
        output = self._output if self._output is not None else sys.stdout

        if not report.has_changes:
            logger.info(NO_CHANGES_MESSAGE)
            print(NO_CHANGES_MESSAGE, file=output)
            if report.duplicate_groups:
                logger.info(f"{len(report.duplicate_groups)} groups of duplicate content in current snapshot")
            return None

        if timestamp is None:
            timestamp = datetime.datetime.now(datetime.UTC)

        lines = render_report(report)

        self.log_directory.mkdir(parents=True, exist_ok=True)
        log_path = self.log_directory / log_file_name(timestamp)
        with open(log_path, 'x', encoding='utf-8') as f:
            for line in lines:
                f.write(line + '\n')
            f.write(f"[Snapshot] {len(snapshot)} records\n")
            for line in render_snapshot(snapshot):
                f.write(line + '\n')

        for line in lines:
            print(line, file=output)

        logger.info(f"Wrote {len(lines)} change lines to {log_path}")
        return log_path
