import logging
import os
import time
from typing import Callable, Iterable

from .config.settings import Settings
from .reconcile.engine import reconcile
from .reconcile.report import ChangeReport
from .report.writer import ChangeReporter
from .snapshot.acquire import SnapshotAcquirer
from .snapshot.baseline import BaselineStore
from .snapshot.digest_cache import DigestCache
from .snapshot.record import Snapshot
from .utils.processor import Processor

logger = logging.getLogger(__name__)


class Monitor:
    """Poll-based watcher cycle: scan, reconcile against the baseline, report, persist.

    Exactly one cycle runs at a time. The new baseline is written as the last
    step of a cycle, so an interrupted cycle leaves the previous baseline in
    place and the next run reconciles against it again.
    """

    def __init__(self, settings: Settings, processor: Processor,
                 reporter: ChangeReporter | None = None,
                 baseline_store: BaselineStore | None = None,
                 digest_cache: DigestCache | None = None,
                 sleep: Callable[[float], None] = time.sleep,
                 excluded_paths: Iterable[str | os.PathLike] = ()):
        """Initialize the monitor.

        Args:
            settings: Roots, interval and state locations
            processor: Fingerprint provider for scanning and re-checking files
            reporter: Defaults to a ChangeReporter on settings.log_directory
            baseline_store: Defaults to a BaselineStore on settings.baseline_path
            digest_cache: Defaults to a cache opened at settings.digest_cache_path,
                          if configured; a cache opened here is closed by close()
            sleep: Called with the interval between cycles
            excluded_paths: Further paths kept out of every scan, e.g. a process log
                            file named on the command line
        """
        self._settings = settings
        self._processor = processor
        self._reporter = reporter if reporter is not None else ChangeReporter(settings.log_directory)
        self._baseline_store = baseline_store if baseline_store is not None else BaselineStore(settings.baseline_path)
        self._sleep = sleep

        self._owned_cache = None
        if digest_cache is None and settings.digest_cache_path is not None:
            digest_cache = self._owned_cache = DigestCache(settings.digest_cache_path)

        # Keep the watcher's own state out of the snapshots it takes
        excluded_paths = [self._baseline_store.path, self._reporter.log_directory, *excluded_paths]
        if digest_cache is not None:
            excluded_paths.append(digest_cache.database_path)
        if settings.log_path is not None:
            excluded_paths.append(settings.log_path)

        self._acquirer = SnapshotAcquirer(
            processor,
            digest_cache=digest_cache,
            follow_symlinks=settings.follow_symlinks,
            excluded_paths=excluded_paths
        )
        self._baseline: Snapshot | None = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._owned_cache is not None:
            self._owned_cache.close()
            self._owned_cache = None

    @property
    def baseline(self) -> Snapshot | None:
        return self._baseline

    def configure_logging_from_settings(self) -> bool:
        """Send process logging to the file named by logging.path, if any.

        Keeps the current level if one is already configured (e.g. from CLI arguments).

        Returns:
            True if logging was configured, False otherwise
        """
        log_path = self._settings.log_path
        if log_path is None:
            return False

        if logging.root.handlers:
            level = logging.root.level
        else:
            level = getattr(logging, (self._settings.log_level or 'INFO').upper(), logging.INFO)

        for handler in logging.root.handlers[:]:
            logging.root.removeHandler(handler)

        log_path.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(
            filename=log_path,
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        return True

    def load_baseline(self) -> Snapshot:
        """Load the persisted baseline, or start from an empty one."""
        baseline = self._baseline_store.load()
        if baseline is None:
            logger.info(f"No usable baseline at {self._baseline_store.path}, starting fresh")
            baseline = Snapshot()
        else:
            logger.info(f"Loaded baseline of {len(baseline)} records from {self._baseline_store.path}")

        self._baseline = baseline
        return baseline

    def scan(self) -> Snapshot:
        return self._acquirer.acquire(self._settings.roots)

    def run_cycle(self) -> ChangeReport:
        """Run one full cycle and adopt the new snapshot as baseline."""
        previous = self._baseline if self._baseline is not None else self.load_baseline()

        current = self.scan()
        report = reconcile(previous, current, self._processor.fingerprint)
        logger.info(f"Reconciled {len(previous)} baseline records with {len(current)} current records: {report!r}")

        self._reporter.report(report, current)
        self._baseline_store.save(current)
        self._baseline = current
        return report

    def run_forever(self, max_cycles: int | None = None) -> int:
        """Run a cycle now, then one per interval.

        A cycle that fails to write its change log or baseline is logged and
        skipped; the previous baseline stays in effect for the next cycle.

        Args:
            max_cycles: Stop after this many cycles; None runs until interrupted

        Returns:
            Number of cycles run, including failed ones
        """
        interval = self._settings.interval
        roots = ', '.join(str(root) for root in self._settings.roots)
        logger.info(f"Watching {roots} every {interval:g} seconds")

        cycles = 0
        while True:
            try:
                self.run_cycle()
            except OSError as e:
                logger.error(f"Cycle failed, keeping previous baseline: {e}")
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                return cycles
            self._sleep(interval)
