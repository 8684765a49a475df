"""Tests for reconcile module.

Test Files and Coverage:
========================

| Test File       | Test Classes                                  | Tested Constructs                 | Tested Functionalities                     |
|-----------------|-----------------------------------------------|-----------------------------------|--------------------------------------------|
| test_engine.py  | ReconcileScenarioTest, MoveDetectionTest,     | reconcile, find_duplicates        | Classification, move pairing, re-checks,   |
|                 | UnchangedStabilityTest, PartitionPropertyTest,|                                   | partition of paths, duplicate grouping     |
|                 | DuplicateDetectionTest                        |                                   |                                            |
| test_report.py  | FormatTimestampTest, FieldDifferenceTest,     | ChangeReport, ChangeReportBuilder,| Timestamp rendering, field descriptions,   |
|                 | ChangeReportBuilderTest                       | FieldDifference, compare_metadata | single build                               |
"""
