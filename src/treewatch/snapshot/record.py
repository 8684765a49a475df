"""File records and the immutable snapshots built from them."""

from dataclasses import dataclass, asdict
from typing import Any, Iterable, Iterator

UNKNOWN_OWNER = 'unknown'


class InvalidSnapshot(ValueError):
    """Raised when records cannot form a snapshot, e.g. two records share a path."""


@dataclass(frozen=True)
class FileRecord:
    """One observed file.

    Attributes:
        path: Absolute filesystem path, unique within a snapshot
        owner: User name of the file owner, or UNKNOWN_OWNER
        created_ns: Creation time in nanoseconds since the epoch (UTC)
        modified_ns: Last modification time in nanoseconds since the epoch (UTC)
        content_hash: Hex digest of the file content at observation time
    """
    path: str
    owner: str
    created_ns: int
    modified_ns: int
    content_hash: str

    def to_dict(self) -> dict[str, Any]:
        """Convert record to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileRecord":
        """Load record from dictionary.

        Raises:
            KeyError: A field is missing
            TypeError: A field has the wrong type
        """
        record = cls(
            path=data['path'],
            owner=data['owner'],
            created_ns=data['created_ns'],
            modified_ns=data['modified_ns'],
            content_hash=data['content_hash'],
        )
        for name in ('path', 'owner', 'content_hash'):
            if not isinstance(getattr(record, name), str):
                raise TypeError(f"FileRecord.{name} must be a string: {getattr(record, name)!r}")
        for name in ('created_ns', 'modified_ns'):
            value = getattr(record, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"FileRecord.{name} must be an integer: {value!r}")
        return record


class Snapshot:
    """Immutable point-in-time inventory of file records.

    Records keep the order in which they were supplied (the traversal order of
    the scan that produced them). Iteration, `paths()` and `to_list()` follow
    that order. Equality compares the sets of records and ignores order.

    Raises:
        InvalidSnapshot: Two records carry the same path
    """

    def __init__(self, records: Iterable[FileRecord] = ()):
        by_path: dict[str, FileRecord] = {}
        for record in records:
            if not isinstance(record, FileRecord):
                raise TypeError(f"Snapshot entries must be FileRecord objects, got {type(record).__name__}")
            if record.path in by_path:
                raise InvalidSnapshot(f"Duplicate path in snapshot: {record.path}")
            by_path[record.path] = record
        self._by_path = by_path

    def __len__(self) -> int:
        return len(self._by_path)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self._by_path.values())

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Snapshot):
            return NotImplemented
        return self._by_path == other._by_path

    def __repr__(self) -> str:
        return f"Snapshot({len(self)} records)"

    def get(self, path: str) -> FileRecord | None:
        return self._by_path.get(path)

    def paths(self) -> list[str]:
        return list(self._by_path)

    def to_list(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self]

    @classmethod
    def from_list(cls, data: list[dict[str, Any]]) -> "Snapshot":
        if not isinstance(data, list):
            raise TypeError("Snapshot data must be a list of records")
        return cls(FileRecord.from_dict(item) for item in data)
