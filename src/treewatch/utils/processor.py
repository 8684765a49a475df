import asyncio
import functools
import hashlib
import logging
import multiprocessing
from multiprocessing.pool import Pool
import os
import pathlib
import pwd
from typing import Awaitable, NamedTuple

from ..snapshot.record import UNKNOWN_OWNER
from .profiling import profile_worker

logger = logging.getLogger(__name__)


@profile_worker
def compute_sha256_for_path(path: str) -> str:
    with open(path, "rb") as f:
        # noinspection PyTypeChecker
        return hashlib.file_digest(f, hashlib.sha256).hexdigest()


@functools.lru_cache(maxsize=1024)
def lookup_owner(uid: int) -> str:
    """User name for uid, or UNKNOWN_OWNER when the account database has no entry."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return UNKNOWN_OWNER


class FileMetadata(NamedTuple):
    owner: str
    created_ns: int
    modified_ns: int
    size: int


def metadata_from_stat(st: os.stat_result) -> FileMetadata:
    """Extract record metadata from a stat result.

    Creation time is the birth time where the platform reports one and the
    inode change time otherwise.
    """
    created_ns = getattr(st, "st_birthtime_ns", None)
    if created_ns is None:
        birthtime = getattr(st, "st_birthtime", None)
        created_ns = int(birthtime * 1000000000) if birthtime is not None else st.st_ctime_ns

    return FileMetadata(lookup_owner(st.st_uid), created_ns, st.st_mtime_ns, st.st_size)


class Processor:
    """Fingerprint provider backed by a process pool.

    sha256() is the awaitable used while scanning; fingerprint() blocks and is
    handed to the reconciliation engine for re-checking files whose metadata
    changed. Both raise OSError when the file can't be read.
    """

    def __init__(self, concurrency: int | None = None):
        if concurrency is None:
            concurrency = multiprocessing.cpu_count()

        self._concurrency = concurrency
        self._pool: Pool = Pool(self._concurrency)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self._pool.close()
        self._pool.join()

    @property
    def concurrency(self):
        return self._concurrency

    def sha256(self, path: pathlib.Path | str) -> Awaitable[str]:
        logger.debug(f"Starting hash computation for: {path}")

        async def log_and_compute():
            result = await self._evaluate(compute_sha256_for_path, str(path))
            logger.debug(f"Completed hash computation for: {path}")
            return result

        return log_and_compute()

    def fingerprint(self, path: pathlib.Path | str) -> str:
        logger.info(f"Re-hashing {path}")
        return self._pool.apply(compute_sha256_for_path, (str(path),))

    def _evaluate(self, func, *args):
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def set_result(value):
            if not future.cancelled():
                future.set_result(value)

        def set_exception(e):
            if not future.cancelled():
                future.set_exception(e)

        self._pool.apply_async(func, args=args,
                               callback=lambda v: loop.call_soon_threadsafe(set_result, v),
                               error_callback=lambda e: loop.call_soon_threadsafe(set_exception, e))

        return future
