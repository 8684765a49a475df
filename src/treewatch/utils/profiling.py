"""cProfile support for treewatch.

Setting TREEWATCH_PROFILE to a directory makes the CLI entry point and every
hashing worker dump profile data under <dir>/<start_ms>_<main_pid>/, one file
per profiled call: main_<pid>_<seq>.prof or worker_<pid>_<seq>.prof.
"""
import cProfile
import functools
import itertools
import os
import time
from pathlib import Path
from typing import Callable, TypeVar, ParamSpec

P = ParamSpec('P')
T = TypeVar('T')

PROFILE_ENV = 'TREEWATCH_PROFILE'
_SESSION_ENV = '_TREEWATCH_PROFILE_SESSION_DIR'

_profile_counter = itertools.count()


def get_profile_dir() -> Path | None:
    """Directory for this session's profile files, or None when profiling is off."""
    profile_path = os.environ.get(PROFILE_ENV)
    if not profile_path:
        return None
    return Path(profile_path) / _session_dir_name()


def _session_dir_name() -> str:
    # Workers inherit the name chosen by the main process through the environment
    session_dir = os.environ.get(_SESSION_ENV)
    if session_dir:
        return session_dir
    return f"{int(time.time() * 1000)}_{os.getpid()}"


def generate_profile_filename(prefix: str = "profile") -> str:
    return f"{prefix}_{os.getpid()}_{next(_profile_counter)}.prof"


def profile_function(func: Callable[P, T], prefix: str = "profile") -> Callable[P, T]:
    """Wrap func so each call is profiled when TREEWATCH_PROFILE is set."""
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        profile_dir = get_profile_dir()
        if profile_dir is None:
            return func(*args, **kwargs)

        profile_dir.mkdir(parents=True, exist_ok=True)
        profile_file = profile_dir / generate_profile_filename(prefix)

        profiler = cProfile.Profile()
        try:
            profiler.enable()
            return func(*args, **kwargs)
        finally:
            profiler.disable()
            profiler.dump_stats(str(profile_file))

    return wrapper


def profile_main(func: Callable[P, T]) -> Callable[P, T]:
    """Profile the CLI entry point and pin the session directory for workers."""
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        if os.environ.get(PROFILE_ENV):
            os.environ[_SESSION_ENV] = _session_dir_name()
        return profile_function(func, prefix="main")(*args, **kwargs)

    return wrapper


def profile_worker(func: Callable[P, T]) -> Callable[P, T]:
    return profile_function(func, prefix="worker")
