import functools
import os
import stat
from pathlib import Path
from typing import Callable, Generator, Iterator, NamedTuple


class FileContext:
    """Context object for a file or directory during traversal.

    Stat information is read lazily with lstat() and cached, so symlinks are
    reported as symlinks rather than as their targets.
    """
    def __init__(self, parent, name: str | None, path: Path | None = None, st: os.stat_result | None = None):
        self._parent: FileContext | None = parent
        self._name: str | None = name
        self._stat: os.stat_result | None = st
        self._path: Path | None = path

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def parent(self) -> 'FileContext':
        if self._parent is None:
            raise LookupError("no parent")

        return self._parent

    @property
    def stat(self) -> os.stat_result:
        if self._stat is None:
            if self._path is None:
                raise LookupError("stat not available and path not provided")
            self._stat = self._path.stat(follow_symlinks=False)
        return self._stat

    @functools.cached_property
    def relative_path(self) -> Path | None:
        """Path relative to the walked root, built from the parent chain."""
        if self._name is None:
            return None

        if self._parent is None:
            return Path(self._name)

        parent_path = self._parent.relative_path
        if parent_path is None:
            return Path(self._name)

        return parent_path / self._name

    def is_file(self):
        return stat.S_ISREG(self.stat.st_mode)

    def is_dir(self):
        return stat.S_ISDIR(self.stat.st_mode)

    def is_symlink(self):
        return stat.S_ISLNK(self.stat.st_mode)


ErrorHandler = Callable[[Path, OSError], None]


def walk(path: Path, parent: FileContext, on_error: ErrorHandler) -> Generator[tuple[Path, FileContext], bool | None, None]:
    """Recursively traverse a directory in name order.

    Sending True back for a yielded directory prunes it. Directories that
    can't be listed and entries that can't be stat'ed are passed to on_error
    and skipped.
    """
    try:
        children = sorted(path.iterdir(), key=lambda p: p.name)
    except OSError as e:
        on_error(path, e)
        return

    child: Path
    for child in children:
        context = FileContext(parent, child.name, path=child)
        prune = yield child, context

        if prune:
            continue

        try:
            is_dir = context.is_dir()
        except OSError as e:
            on_error(child, e)
            continue

        if is_dir:
            yield from walk(child, context, on_error)


class WalkPolicy(NamedTuple):
    """Policy controlling filesystem traversal.

    Attributes:
        excluded_paths: Absolute paths skipped together with everything below them
        on_error: Called with (path, exception) for unreadable directories and entries
    """
    excluded_paths: set[Path]
    on_error: ErrorHandler


def walk_with_policy(path: Path, policy: WalkPolicy) -> Iterator[tuple[Path, FileContext]]:
    """Walk a tree, dropping excluded paths, and yield (absolute_path, context) pairs.

    The root itself is not yielded.
    """
    context = FileContext(None, None, path)
    gen = walk(path, context, policy.on_error)
    pending = None

    try:
        while True:
            file_path, file_context = gen.send(pending)
            pending = None

            if file_path in policy.excluded_paths:
                pending = True
                continue

            yield file_path, file_context
    except StopIteration:
        pass
