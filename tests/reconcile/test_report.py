"""Tests for change report types."""
import unittest

from treewatch.reconcile.report import (
    ChangeReport,
    ChangeReportBuilder,
    FieldDifference,
    RecordField,
    compare_metadata,
    format_timestamp,
)
from treewatch.snapshot.record import FileRecord


class FormatTimestampTest(unittest.TestCase):

    def test_nanosecond_precision_utc(self):
        """Test timestamps render in UTC with nanoseconds."""
        self.assertEqual('1970-01-01T00:00:00.000000000Z', format_timestamp(0))
        self.assertEqual('2023-11-14T22:13:20.000000006Z', format_timestamp(1_700_000_000_000_000_006))


class FieldDifferenceTest(unittest.TestCase):

    def test_owner_description(self):
        """Test owner difference description."""
        self.assertEqual('owner: alice -> bob', FieldDifference('owner', 'alice', 'bob').description())

    def test_timestamp_description(self):
        """Test timestamp difference description."""
        difference = FieldDifference('modified', 0, 1_500_000_000)

        self.assertEqual(RecordField.MODIFIED, difference.field)
        self.assertEqual('modified: 1970-01-01T00:00:00.000000000Z -> 1970-01-01T00:00:01.500000000Z',
                         difference.description())

    def test_unknown_field_rejected(self):
        """Test unknown fields are rejected."""
        with self.assertRaises(ValueError):
            FieldDifference('size', 1, 2)

    def test_compare_metadata_ignores_hash(self):
        """Test compare_metadata ignores the content hash."""
        old = FileRecord('/p', 'alice', 1, 2, 'h1')
        new = FileRecord('/p', 'alice', 1, 2, 'h2')

        self.assertEqual([], compare_metadata(old, new))


class ChangeReportBuilderTest(unittest.TestCase):

    def test_build_collects_entries(self):
        """Test the builder collects entries per category."""
        a = FileRecord('/a', 'alice', 1, 1, 'h')
        b = FileRecord('/b', 'alice', 1, 1, 'h')
        c = FileRecord('/c', 'bob', 1, 2, 'g')

        builder = ChangeReportBuilder()
        builder.add_moved(a, b)
        builder.add_changed(c, c, [FieldDifference('modified', 1, 2)], 'g')
        builder.add_duplicate_group('h', [a, b])
        report = builder.build()

        self.assertTrue(report.has_changes)
        self.assertEqual({'/a'}, report.moved_sources())
        self.assertEqual({'/b'}, report.moved_destinations())
        self.assertEqual('g', report.changed[0].old_hash)
        self.assertEqual(['/a', '/b'], report.duplicate_groups[0].paths)

    def test_build_only_once(self):
        """Test a builder can only build once."""
        builder = ChangeReportBuilder()
        builder.build()

        with self.assertRaises(RuntimeError):
            builder.build()
        with self.assertRaises(RuntimeError):
            builder.add_added(FileRecord('/a', 'alice', 1, 1, 'h'))

    def test_duplicates_alone_are_not_changes(self):
        """Test duplicate groups alone are not changes."""
        a = FileRecord('/a', 'alice', 1, 1, 'h')
        b = FileRecord('/b', 'alice', 1, 1, 'h')

        builder = ChangeReportBuilder()
        builder.add_duplicate_group('h', [a, b])

        self.assertFalse(builder.build().has_changes)
        self.assertFalse(ChangeReport().has_changes)


if __name__ == '__main__':
    unittest.main()
