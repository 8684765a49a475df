import tempfile
import tomllib
import unittest
from pathlib import Path
from unittest import mock

from treewatch.config.settings import DEFAULT_INTERVAL, Settings


class SettingsTestCase(unittest.TestCase):

    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmpdir.name)
        patcher = mock.patch('treewatch.config.settings.default_state_directory',
                             return_value=self.tmpdir / 'state')
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmpdir.cleanup)

    def write_settings(self, content: str, name: str = 'settings.toml') -> Path:
        path = self.tmpdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
        return path


class DefaultsTest(SettingsTestCase):

    def test_defaults_without_file_or_environment(self):
        """Test defaults apply without a file or environment."""
        settings = Settings(environ={})

        self.assertIsNone(settings.settings_file)
        self.assertEqual([Path.cwd()], settings.roots)
        self.assertEqual(DEFAULT_INTERVAL, settings.interval)
        self.assertEqual(self.tmpdir / 'state' / 'baseline.json', settings.baseline_path)
        self.assertEqual(self.tmpdir / 'state' / 'logs', settings.log_directory)
        self.assertIsNone(settings.digest_cache_path)
        self.assertFalse(settings.follow_symlinks)
        self.assertIsNone(settings.concurrency)
        self.assertIsNone(settings.log_path)
        self.assertIsNone(settings.log_level)

    def test_default_settings_file_is_picked_up(self):
        """Test the default settings file is read when present."""
        self.write_settings('[watch]\ninterval = 42\n', 'state/settings.toml')

        settings = Settings(environ={})

        self.assertEqual(self.tmpdir / 'state' / 'settings.toml', settings.settings_file)
        self.assertEqual(42.0, settings.interval)


class SettingsFileTest(SettingsTestCase):

    def test_values_from_file(self):
        path = self.write_settings("""
[watch]
roots = ["/srv/data", "/home/shared"]
interval = 600

[state]
baseline = "/var/lib/treewatch/baseline.json"
log_directory = "/var/log/treewatch"

[scan]
digest_cache = "/var/lib/treewatch/digests"
follow_symlinks = true
concurrency = 3

[logging]
path = "/var/log/treewatch/treewatch.log"
level = "DEBUG"
""")

        settings = Settings(path, environ={})

        self.assertEqual([Path('/srv/data'), Path('/home/shared')], settings.roots)
        self.assertEqual(600.0, settings.interval)
        self.assertEqual(Path('/var/lib/treewatch/baseline.json'), settings.baseline_path)
        self.assertEqual(Path('/var/log/treewatch'), settings.log_directory)
        self.assertEqual(Path('/var/lib/treewatch/digests'), settings.digest_cache_path)
        self.assertTrue(settings.follow_symlinks)
        self.assertEqual(3, settings.concurrency)
        self.assertEqual(Path('/var/log/treewatch/treewatch.log'), settings.log_path)
        self.assertEqual('DEBUG', settings.log_level)

    def test_config_environment_variable(self):
        """Test TREEWATCH_CONFIG names the settings file."""
        path = self.write_settings('[watch]\ninterval = 7\n', 'elsewhere.toml')

        settings = Settings(environ={'TREEWATCH_CONFIG': str(path)})

        self.assertEqual(path, settings.settings_file)
        self.assertEqual(7.0, settings.interval)

    def test_get_dot_notation(self):
        """Test dot-notation lookup of nested keys."""
        path = self.write_settings('[scan]\nconcurrency = 2\nname = "x"\n')
        settings = Settings(path, environ={})

        self.assertEqual(2, settings.get('scan.concurrency'))
        self.assertEqual({'concurrency': 2, 'name': 'x'}, settings.get('scan'))
        self.assertIsNone(settings.get('scan.missing'))
        self.assertEqual('d', settings.get('scan.name.deeper', 'd'))
        self.assertEqual('d', settings.get('nothing', 'd'))

    def test_missing_explicit_file(self):
        """Test a missing explicit settings file is an error."""
        with self.assertRaises(FileNotFoundError):
            Settings(self.tmpdir / 'missing.toml', environ={})

    def test_invalid_toml(self):
        """Test invalid TOML is an error."""
        path = self.write_settings('[watch\n')

        with self.assertRaises(tomllib.TOMLDecodeError):
            Settings(path, environ={})


class EnvironmentOverrideTest(SettingsTestCase):

    def test_environment_beats_file(self):
        path = self.write_settings("""
[watch]
roots = ["/from/file"]
interval = 600

[state]
baseline = "/file/baseline.json"
log_directory = "/file/logs"
""")

        settings = Settings(path, environ={
            'TREEWATCH_ROOTS': '/env/a; /env/b ;',
            'TREEWATCH_INTERVAL': '2.5',
            'TREEWATCH_BASELINE': '/env/baseline.json',
            'TREEWATCH_LOG_DIR': '/env/logs',
        })

        self.assertEqual([Path('/env/a'), Path('/env/b')], settings.roots)
        self.assertEqual(2.5, settings.interval)
        self.assertEqual(Path('/env/baseline.json'), settings.baseline_path)
        self.assertEqual(Path('/env/logs'), settings.log_directory)

    def test_blank_roots_variable_falls_back(self):
        """Test a blank TREEWATCH_ROOTS falls back to the settings file."""
        path = self.write_settings('[watch]\nroots = ["/from/file"]\n')

        settings = Settings(path, environ={'TREEWATCH_ROOTS': ' ; '})

        self.assertEqual([Path('/from/file')], settings.roots)


class ValidationTest(SettingsTestCase):

    def test_invalid_intervals(self):
        """Test non-positive and non-numeric intervals are rejected."""
        for value in ['0', '-5', 'soon', 'nan']:
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    _ = Settings(environ={'TREEWATCH_INTERVAL': value}).interval

    def test_invalid_roots(self):
        """Test malformed roots are rejected."""
        path = self.write_settings('[watch]\nroots = "/not/a/list"\n')

        with self.assertRaises(ValueError):
            _ = Settings(path, environ={}).roots

    def test_invalid_concurrency(self):
        """Test invalid concurrency values are rejected."""
        for value in ['0', 'true', '"4"']:
            with self.subTest(value=value):
                path = self.write_settings(f'[scan]\nconcurrency = {value}\n')

                with self.assertRaises(ValueError):
                    _ = Settings(path, environ={}).concurrency


if __name__ == '__main__':
    unittest.main()
