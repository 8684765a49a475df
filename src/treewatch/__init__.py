from .snapshot.record import FileRecord, Snapshot, InvalidSnapshot, UNKNOWN_OWNER
from .snapshot.acquire import SnapshotAcquirer
from .snapshot.baseline import BaselineStore
from .snapshot.digest_cache import DigestCache
from .reconcile.engine import reconcile, find_duplicates
from .reconcile.report import ChangeReport, ChangedEntry, MovedEntry, DuplicateGroup, FieldDifference, RecordField
from .report.writer import ChangeReporter, render_report
from .config.settings import Settings
from .utils.processor import Processor
from .monitor import Monitor
