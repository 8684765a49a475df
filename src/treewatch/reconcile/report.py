"""Change report produced by one reconciliation."""

import datetime
from enum import StrEnum
from typing import NamedTuple

from ..snapshot.record import FileRecord


class RecordField(StrEnum):
    OWNER = 'owner'
    CREATED = 'created'
    MODIFIED = 'modified'


def format_timestamp(value_ns: int, tz=None) -> str:
    """Render nanoseconds since the epoch as ISO 8601 with nanosecond precision."""
    if tz is None:
        tz = datetime.UTC
    return datetime.datetime.fromtimestamp(value_ns // 1000000000, tz=tz)\
        .strftime("%Y-%m-%dT%H:%M:%S.{:09}Z").format(value_ns % 1000000000)


class FieldDifference:
    """A metadata field whose value differs between two records of the same path."""

    def __init__(self, field: str, old, new):
        self.field = RecordField(field)
        self.old = old
        self.new = new

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldDifference):
            return NotImplemented
        return (self.field, self.old, self.new) == (other.field, other.old, other.new)

    def __repr__(self) -> str:
        return f"FieldDifference({self.field.value!r}, {self.old!r}, {self.new!r})"

    def description(self, *, tz=None) -> str:
        if self.field in (RecordField.CREATED, RecordField.MODIFIED):
            return f"{self.field}: {format_timestamp(self.old, tz)} -> {format_timestamp(self.new, tz)}"
        else:
            return f"{self.field}: {self.old} -> {self.new}"


def compare_metadata(old: FileRecord, new: FileRecord) -> list[FieldDifference]:
    diffs = []

    if old.owner != new.owner:
        diffs.append(FieldDifference('owner', old.owner, new.owner))

    if old.created_ns != new.created_ns:
        diffs.append(FieldDifference('created', old.created_ns, new.created_ns))

    if old.modified_ns != new.modified_ns:
        diffs.append(FieldDifference('modified', old.modified_ns, new.modified_ns))

    return diffs


class MovedEntry(NamedTuple):
    """A file that left one path and reappeared, with identical content, at a new path."""
    source: FileRecord
    destination: FileRecord


class ChangedEntry(NamedTuple):
    """A path present in both snapshots whose metadata differs.

    Attributes:
        old: Record from the previous snapshot
        new: Record from the current snapshot
        differences: Metadata fields that differ, in owner/created/modified order
        old_hash: Content hash stored in the previous snapshot
        new_hash: Freshly computed content hash, or None if it could not be computed
    """
    old: FileRecord
    new: FileRecord
    differences: list[FieldDifference]
    old_hash: str
    new_hash: str | None

    @property
    def path(self) -> str:
        return self.new.path

    @property
    def verified(self) -> bool:
        """Whether the content could be re-hashed when the change was detected."""
        return self.new_hash is not None

    @property
    def content_changed(self) -> bool:
        return self.new_hash is not None and self.new_hash != self.old_hash


class DuplicateGroup(NamedTuple):
    """Two or more current records sharing one content hash."""
    content_hash: str
    records: list[FileRecord]

    @property
    def paths(self) -> list[str]:
        return [record.path for record in self.records]


class ChangeReport:
    """Classified result of reconciling two snapshots.

    The four change lists are disjoint by path: a path appears at most once
    across `moved` (as source or destination), `added`, `removed` and
    `changed`. Paths in neither list are unchanged. `duplicate_groups` is
    computed over the current snapshot only and may overlap with any category.
    """

    def __init__(
            self,
            moved: list[MovedEntry] | None = None,
            added: list[FileRecord] | None = None,
            removed: list[FileRecord] | None = None,
            changed: list[ChangedEntry] | None = None,
            duplicate_groups: list[DuplicateGroup] | None = None):
        self.moved: list[MovedEntry] = moved or []
        self.added: list[FileRecord] = added or []
        self.removed: list[FileRecord] = removed or []
        self.changed: list[ChangedEntry] = changed or []
        self.duplicate_groups: list[DuplicateGroup] = duplicate_groups or []

    def __repr__(self) -> str:
        return (f"ChangeReport(moved={len(self.moved)}, added={len(self.added)}, "
                f"removed={len(self.removed)}, changed={len(self.changed)}, "
                f"duplicate_groups={len(self.duplicate_groups)})")

    @property
    def has_changes(self) -> bool:
        return bool(self.moved or self.added or self.removed or self.changed)

    def moved_sources(self) -> set[str]:
        return {entry.source.path for entry in self.moved}

    def moved_destinations(self) -> set[str]:
        return {entry.destination.path for entry in self.moved}


class ChangeReportBuilder:
    """Accumulates entries during one reconciliation and hands out the finished report once."""

    def __init__(self):
        self._report: ChangeReport | None = ChangeReport()

    def _current(self) -> ChangeReport:
        if self._report is None:
            raise RuntimeError("Report has already been built")
        return self._report

    def add_moved(self, source: FileRecord, destination: FileRecord) -> None:
        self._current().moved.append(MovedEntry(source, destination))

    def add_added(self, record: FileRecord) -> None:
        self._current().added.append(record)

    def add_removed(self, record: FileRecord) -> None:
        self._current().removed.append(record)

    def add_changed(self, old: FileRecord, new: FileRecord, differences: list[FieldDifference],
                    new_hash: str | None) -> None:
        self._current().changed.append(ChangedEntry(old, new, differences, old.content_hash, new_hash))

    def add_duplicate_group(self, content_hash: str, records: list[FileRecord]) -> None:
        self._current().duplicate_groups.append(DuplicateGroup(content_hash, records))

    def build(self) -> ChangeReport:
        report = self._current()
        self._report = None
        return report
