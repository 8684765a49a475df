"""Reconciliation of snapshots.

This package contains:
- engine: reconcile() and find_duplicates()
- report: ChangeReport, its entry types and ChangeReportBuilder
"""
