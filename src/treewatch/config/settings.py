import os
import tomllib
from pathlib import Path
from typing import Mapping

ENV_CONFIG = 'TREEWATCH_CONFIG'
ENV_ROOTS = 'TREEWATCH_ROOTS'
ENV_INTERVAL = 'TREEWATCH_INTERVAL'
ENV_BASELINE = 'TREEWATCH_BASELINE'
ENV_LOG_DIR = 'TREEWATCH_LOG_DIR'

DEFAULT_INTERVAL = 300.0


def default_state_directory() -> Path:
    return Path.home() / '.treewatch'


class Settings:
    """Settings for a watcher process.

    Values come from, in order of precedence: environment variables, the TOML
    settings file, built-in defaults. The raw TOML data is available through
    get(); the typed properties apply the precedence and validation.

    Example settings.toml:

        [watch]
        roots = ["/srv/data", "/home/shared"]
        interval = 600

        [state]
        baseline = "/var/lib/treewatch/baseline.json"
        log_directory = "/var/log/treewatch"

        [scan]
        digest_cache = "/var/lib/treewatch/digests"
        follow_symlinks = false
        concurrency = 4

        [logging]
        path = "/var/log/treewatch/treewatch.log"
        level = "INFO"
    """

    def __init__(self, settings_file: str | os.PathLike | None = None, environ: Mapping[str, str] | None = None):
        """Load settings.

        Args:
            settings_file: TOML file to read. If None, TREEWATCH_CONFIG is used, then
                           ~/.treewatch/settings.toml if it exists; otherwise no file.
            environ: Environment mapping, defaults to os.environ

        Raises:
            FileNotFoundError: An explicitly named settings file does not exist
            tomllib.TOMLDecodeError: The settings file is not valid TOML
        """
        self._environ = os.environ if environ is None else environ
        self._settings = {}

        if settings_file is None:
            settings_file = self._environ.get(ENV_CONFIG) or None

        if settings_file is None:
            candidate = default_state_directory() / 'settings.toml'
            if candidate.exists():
                settings_file = candidate

        self.settings_file = Path(settings_file) if settings_file is not None else None
        if self.settings_file is not None:
            with open(self.settings_file, 'rb') as f:
                self._settings = tomllib.load(f)

    def get(self, key: str, default=None):
        """Get a setting value by dot-separated key path, e.g. 'watch.interval'.

        Returns the default if the path does not exist or crosses a non-table value.
        """
        keys = key.split('.')
        value = self._settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    @property
    def roots(self) -> list[Path]:
        """Watched roots, in configured order."""
        from_env = self._environ.get(ENV_ROOTS)
        if from_env:
            roots = [item.strip() for item in from_env.split(';') if item.strip()]
            if roots:
                return [Path(root).expanduser() for root in roots]

        configured = self.get('watch.roots')
        if configured is not None:
            if not isinstance(configured, list) or not all(isinstance(root, str) for root in configured):
                raise ValueError("watch.roots must be a list of strings")
            return [Path(root).expanduser() for root in configured]

        return [Path.cwd()]

    @property
    def interval(self) -> float:
        """Seconds to sleep between cycles."""
        value = self._environ.get(ENV_INTERVAL)
        if value is None:
            value = self.get('watch.interval', DEFAULT_INTERVAL)

        try:
            interval = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Polling interval must be a number: {value!r}") from None

        if not interval > 0:
            raise ValueError(f"Polling interval must be positive: {value!r}")
        return interval

    @property
    def baseline_path(self) -> Path:
        return self._path_setting(ENV_BASELINE, 'state.baseline', default_state_directory() / 'baseline.json')

    @property
    def log_directory(self) -> Path:
        return self._path_setting(ENV_LOG_DIR, 'state.log_directory', default_state_directory() / 'logs')

    @property
    def digest_cache_path(self) -> Path | None:
        value = self.get('scan.digest_cache')
        return Path(value).expanduser() if value else None

    @property
    def follow_symlinks(self) -> bool:
        return bool(self.get('scan.follow_symlinks', False))

    @property
    def concurrency(self) -> int | None:
        value = self.get('scan.concurrency')
        if value is None:
            return None
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ValueError(f"scan.concurrency must be a positive integer: {value!r}")
        return value

    @property
    def log_path(self) -> Path | None:
        value = self.get('logging.path')
        return Path(value).expanduser() if value else None

    @property
    def log_level(self) -> str | None:
        return self.get('logging.level')

    def _path_setting(self, env_key: str, key: str, default: Path) -> Path:
        value = self._environ.get(env_key) or self.get(key)
        if value:
            return Path(value).expanduser()
        return default
