"""Snapshot acquisition and persistence.

This package contains:
- record: FileRecord and Snapshot
- acquire: SnapshotAcquirer for walking watched roots
- baseline: BaselineStore for the JSON baseline file
- digest_cache: DigestCache, a LevelDB cache of previously computed digests
"""
