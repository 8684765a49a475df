"""Tests for report module.

Test Files and Coverage:
========================

| Test File       | Test Classes                    | Tested Constructs                        | Tested Functionalities                       |
|-----------------|---------------------------------|------------------------------------------|----------------------------------------------|
| test_writer.py  | RenderTest, ChangeReporterTest  | render_report, render_snapshot,          | Line format, log file naming, quiet cycles,  |
|                 |                                 | log_file_name, ChangeReporter            | console mirroring, no overwrite              |
"""
