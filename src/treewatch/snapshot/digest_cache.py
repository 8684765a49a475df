"""LevelDB cache of content digests keyed by path."""

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator

import mmh3
import msgpack
import plyvel

from ..utils.varint import encode_varint, decode_varint

logger = logging.getLogger(__name__)


class CachedDigest:
    """Digest of a file together with the size and mtime it was computed for."""

    def __init__(self, path: str, size: int, modified_ns: int, digest: str):
        self.path = path
        self.size = size
        self.modified_ns = modified_ns
        self.digest = digest

    def to_msgpack(self) -> bytes:
        result = msgpack.dumps([self.path, self.size, self.modified_ns, self.digest])
        assert isinstance(result, bytes)
        return result

    @classmethod
    def from_msgpack(cls, data: bytes) -> "CachedDigest":
        decoded: list[Any] = msgpack.loads(data)
        return cls(decoded[0], decoded[1], decoded[2], decoded[3])


class DigestCache:
    """Persistent map from a file path to the digest computed at its last scan.

    A digest is reused only while the file keeps the exact size and
    modification time it had when hashed.

    Notes:
        - Key format: <16-byte Murmur3 path hash><varint sequence number>
        - Value format: msgpack([path, size, modified_ns, digest])
        - Paths whose hashes collide are stored under different sequence numbers
    """

    def __init__(self, database_path: Path, create: bool = True):
        """Open (and by default create) the cache database.

        Raises:
            FileNotFoundError: Database missing and create=False
        """
        database_path = Path(database_path)
        if create:
            database_path.parent.mkdir(parents=True, exist_ok=True)
        elif not database_path.exists():
            raise FileNotFoundError(f"Digest cache not found: {database_path}")

        self._database_path = database_path
        self._database: plyvel.DB | None = plyvel.DB(str(database_path), create_if_missing=create)

    def __del__(self):
        self.close()

    def __enter__(self) -> "DigestCache":
        if self._database is None:
            raise BrokenPipeError("Digest cache was closed")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        database = getattr(self, '_database', None)
        if database is not None:
            database.close()
            self._database = None

    @property
    def database_path(self) -> Path:
        return self._database_path

    def _db(self) -> plyvel.DB:
        if self._database is None:
            raise RuntimeError("Digest cache is closed")
        return self._database

    def lookup(self, path: str, size: int, modified_ns: int) -> str | None:
        """Cached digest for path if size and modification time are unchanged."""
        entry = self._find(path)
        if entry is None:
            return None

        _, cached = entry
        if cached.size != size or cached.modified_ns != modified_ns:
            return None

        return cached.digest

    def store(self, path: str, size: int, modified_ns: int, digest: str) -> None:
        """Insert or update the entry for path."""
        value = CachedDigest(path, size, modified_ns, digest).to_msgpack()
        hash_db = self._db().prefixed_db(self._compute_path_hash(path))

        next_seq_num = 0
        for key, data in hash_db.iterator():
            seq_num, _ = decode_varint(key, 0)
            next_seq_num = max(next_seq_num, seq_num + 1)

            if CachedDigest.from_msgpack(data).path == path:
                hash_db.put(key, value)
                return

        hash_db.put(encode_varint(next_seq_num), value)

    def retain(self, paths: Iterable[str]) -> int:
        """Delete every entry whose path is not in paths.

        Returns:
            Number of entries deleted
        """
        keep = set(paths)
        database = self._db()

        removed = 0
        with database.write_batch() as batch:
            for key, data in database.iterator():
                if CachedDigest.from_msgpack(data).path not in keep:
                    batch.delete(key)
                    removed += 1

        if removed:
            logger.info(f"Dropped {removed} stale digest cache entries")
        return removed

    def entries(self) -> Iterator[CachedDigest]:
        for _, data in self._db().iterator():
            yield CachedDigest.from_msgpack(data)

    def _find(self, path: str) -> tuple[bytes, CachedDigest] | None:
        hash_db = self._db().prefixed_db(self._compute_path_hash(path))
        for key, data in hash_db.iterator():
            cached = CachedDigest.from_msgpack(data)
            if cached.path == path:
                return key, cached
        return None

    @staticmethod
    def _compute_path_hash(path: str) -> bytes:
        """Compute the 128-bit Murmur3 hash of a path as 16 big-endian bytes."""
        hash_value = mmh3.hash128(path.encode('utf-8', 'surrogateescape'), signed=False)
        return hash_value.to_bytes(16, 'big')
