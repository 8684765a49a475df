import asyncio
import logging
import os
import stat
from asyncio import TaskGroup
from pathlib import Path
from typing import Iterable

from ..utils.processor import Processor, metadata_from_stat
from ..utils.throttler import Throttler
from ..utils.walker import FileContext, WalkPolicy, walk_with_policy
from .digest_cache import DigestCache
from .record import FileRecord, Snapshot

logger = logging.getLogger(__name__)


class SnapshotAcquirer:
    """Builds a Snapshot of every regular file below a list of roots.

    Files are hashed concurrently through the Processor's pool while the tree
    is walked. Records keep walk order: roots in the order given, entries
    sorted by name within each directory. Unreadable roots, directories and
    files are logged as warnings and left out; they never abort the scan.
    """

    def __init__(self, processor: Processor, digest_cache: DigestCache | None = None,
                 follow_symlinks: bool = False, excluded_paths: Iterable[str | os.PathLike] = ()):
        """Initialize the acquirer.

        Args:
            processor: Fingerprint provider used for hashing
            digest_cache: Optional cache consulted before hashing a file
            follow_symlinks: Record symlinks to regular files under the link path.
                             Symlinked directories are never descended into.
            excluded_paths: Paths (and, for directories, their contents) left out of
                            every snapshot, e.g. the baseline file and the log directory
        """
        self._processor = processor
        self._digest_cache = digest_cache
        self._follow_symlinks = follow_symlinks
        self._policy = WalkPolicy(
            excluded_paths={Path(os.path.abspath(p)) for p in excluded_paths},
            on_error=self._warn_unreadable
        )

    def acquire(self, roots: Iterable[str | os.PathLike]) -> Snapshot:
        return asyncio.run(self.acquire_async(roots))

    async def acquire_async(self, roots: Iterable[str | os.PathLike]) -> Snapshot:
        slots: list[FileRecord | None] = []
        seen: set[str] = set()
        root_count = 0

        async with TaskGroup() as tg:
            throttler = Throttler(tg, self._processor.concurrency * 2)

            for root in roots:
                root_path = Path(os.path.abspath(root))
                root_count += 1
                if not root_path.is_dir():
                    logger.warning(f"Skipping watched root {root_path}: not an accessible directory")
                    continue

                for file_path, context in walk_with_policy(root_path, self._policy):
                    st = self._regular_file_stat(file_path, context)
                    if st is None:
                        continue

                    # Overlapping roots: the first root to reach a file records it
                    path = str(file_path)
                    if path in seen:
                        continue
                    seen.add(path)

                    slots.append(None)
                    await throttler.schedule(self._fingerprint(path, st, slots, len(slots) - 1))

        records = [record for record in slots if record is not None]

        if self._digest_cache is not None:
            self._digest_cache.retain(record.path for record in records)

        logger.info(f"Scanned {len(records)} files under {root_count} roots")
        return Snapshot(records)

    def _regular_file_stat(self, file_path: Path, context: FileContext) -> os.stat_result | None:
        try:
            if context.is_file():
                return context.stat

            if self._follow_symlinks and context.is_symlink():
                st = file_path.stat()
                if stat.S_ISREG(st.st_mode):
                    return st
        except FileNotFoundError:
            logger.debug(f"Skipping vanished or dangling path {file_path}")
        except OSError as e:
            self._warn_unreadable(file_path, e)

        return None

    async def _fingerprint(self, path: str, st: os.stat_result, slots: list[FileRecord | None], index: int):
        metadata = metadata_from_stat(st)

        digest = None
        if self._digest_cache is not None:
            digest = self._digest_cache.lookup(path, metadata.size, metadata.modified_ns)

        if digest is None:
            try:
                digest = await self._processor.sha256(path)
            except OSError as e:
                self._warn_unreadable(Path(path), e)
                return

            if self._digest_cache is not None:
                self._digest_cache.store(path, metadata.size, metadata.modified_ns, digest)

        slots[index] = FileRecord(path, metadata.owner, metadata.created_ns, metadata.modified_ns, digest)

    @staticmethod
    def _warn_unreadable(path: Path, error: OSError):
        logger.warning(f"Skipping unreadable path {path}: {error}")
