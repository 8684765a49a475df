import json
import logging
import os
import tempfile
from pathlib import Path

from .record import Snapshot

logger = logging.getLogger(__name__)

BASELINE_FORMAT_VERSION = 1


class BaselineStore:
    """Reads and writes the snapshot used as "previous" by the next cycle.

    The file is JSON: {"version": 1, "records": [<FileRecord dict>, ...]}.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def save(self, snapshot: Snapshot) -> None:
        """Atomically replace the baseline with snapshot.

        The data is written and fsynced to a temporary file next to the
        baseline, which is then renamed over it; an interrupted save leaves the
        old baseline untouched.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix='.tmp', dir=self.path.parent)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump({'version': BASELINE_FORMAT_VERSION, 'records': snapshot.to_list()}, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_name, self.path)
        except BaseException:
            try:
                os.unlink(temp_name)
            except FileNotFoundError:
                pass
            raise

        logger.info(f"Saved baseline of {len(snapshot)} records to {self.path}")

    def load(self) -> Snapshot | None:
        """Load the baseline.

        Returns:
            The stored Snapshot, or None if the file is missing or can't be parsed
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable baseline {self.path}: {e}")
            return None

        try:
            if not isinstance(data, dict):
                raise TypeError("top-level value is not an object")
            if data.get('version') != BASELINE_FORMAT_VERSION:
                raise ValueError(f"unsupported version {data.get('version')!r}")
            return Snapshot.from_list(data['records'])
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed baseline {self.path}: {e}")
            return None
