"""Reconciliation of two snapshots into a classified change report.

Every path of the previous and current snapshots ends up in exactly one of
Moved (as source or destination), Added, Removed, Changed or Unchanged.
Moves are detected first, using the content hash as identity, so that a
rename is never reported as an unrelated removal plus addition.

When several files share a hash and more than one of them moves in the same
cycle, candidates are paired first-available: the earliest unpaired old path
with the earliest unpaired new path, both in snapshot traversal order.
Identical content gives no better signal, so the pairing is arbitrary but
deterministic, and unpaired candidates still fall through to Added/Removed.
"""

import logging
from typing import Callable

from ..snapshot.record import FileRecord, Snapshot
from .report import ChangeReport, ChangeReportBuilder, compare_metadata

logger = logging.getLogger(__name__)

Fingerprint = Callable[[str], str]


def _index_by_hash(snapshot: Snapshot) -> dict[str, list[str]]:
    by_hash: dict[str, list[str]] = {}
    for record in snapshot:
        by_hash.setdefault(record.content_hash, []).append(record.path)
    return by_hash


class _Reconciliation:
    """Lookup structures and resolution state for a single reconcile() call."""

    def __init__(self, previous: Snapshot, current: Snapshot, fingerprint: Fingerprint | None):
        self._previous = previous
        self._current = current
        self._fingerprint = fingerprint
        self._prev_by_hash = _index_by_hash(previous)
        self._curr_by_hash = _index_by_hash(current)
        self._resolved: set[str] = set()
        self._builder = ChangeReportBuilder()

    def run(self) -> ChangeReport:
        self._detect_moves()
        self._detect_added()
        self._detect_removed()
        self._detect_changed()
        for content_hash, records in _duplicate_groups(self._current):
            self._builder.add_duplicate_group(content_hash, records)
        return self._builder.build()

    def _detect_moves(self):
        for content_hash, old_paths in self._prev_by_hash.items():
            new_paths = self._curr_by_hash.get(content_hash)
            if new_paths is None:
                continue

            sources = [path for path in old_paths if path not in self._current]
            destinations = [path for path in new_paths if path not in self._previous]

            # zip() stops at the shorter list; the surplus stays unresolved
            for source, destination in zip(sources, destinations):
                self._builder.add_moved(self._previous.get(source), self._current.get(destination))
                self._resolved.add(source)
                self._resolved.add(destination)

    def _detect_added(self):
        for record in self._current:
            if record.path not in self._previous and record.path not in self._resolved:
                self._builder.add_added(record)

    def _detect_removed(self):
        for record in self._previous:
            if record.path not in self._current and record.path not in self._resolved:
                self._builder.add_removed(record)

    def _detect_changed(self):
        for old in self._previous:
            new = self._current.get(old.path)
            if new is None or old.path in self._resolved:
                continue

            differences = compare_metadata(old, new)
            if not differences:
                continue

            self._builder.add_changed(old, new, differences, self._recheck(new))

    def _recheck(self, record: FileRecord) -> str | None:
        """Fresh content hash for a path whose metadata changed, or None if unreadable."""
        if self._fingerprint is None:
            return record.content_hash

        try:
            return self._fingerprint(record.path)
        except OSError as e:
            logger.warning(f"Cannot verify content of {record.path}: {e}")
            return None


def _duplicate_groups(snapshot: Snapshot) -> list[tuple[str, list[FileRecord]]]:
    by_hash: dict[str, list[FileRecord]] = {}
    for record in snapshot:
        by_hash.setdefault(record.content_hash, []).append(record)
    return [(content_hash, by_hash[content_hash]) for content_hash in sorted(by_hash)
            if len(by_hash[content_hash]) >= 2]


def find_duplicates(snapshot: Snapshot) -> list[tuple[str, list[FileRecord]]]:
    """Group records of a snapshot sharing a content hash.

    Returns:
        (content_hash, records) for every hash carried by at least two records,
        ordered by hash; records within a group keep snapshot order.
    """
    if not isinstance(snapshot, Snapshot):
        raise TypeError(f"Expected a Snapshot, got {type(snapshot).__name__}")
    return _duplicate_groups(snapshot)


def reconcile(previous: Snapshot, current: Snapshot, fingerprint: Fingerprint | None = None) -> ChangeReport:
    """Classify every path of two snapshots.

    Args:
        previous: The baseline snapshot
        current: The freshly acquired snapshot
        fingerprint: Called with a path whose owner or timestamps differ between
            the snapshots; returns a fresh content hash or raises OSError when the
            file can't be read. If None, the hash recorded in `current` is used.

    Returns:
        The ChangeReport. Neither snapshot is modified and nothing is retained.
    """
    if not isinstance(previous, Snapshot):
        raise TypeError(f"Expected a Snapshot for previous, got {type(previous).__name__}")
    if not isinstance(current, Snapshot):
        raise TypeError(f"Expected a Snapshot for current, got {type(current).__name__}")

    return _Reconciliation(previous, current, fingerprint).run()
