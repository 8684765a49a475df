"""Tests for snapshot module.

Test Files and Coverage:
========================

| Test File             | Test Classes                               | Tested Constructs    | Tested Functionalities                          |
|-----------------------|--------------------------------------------|----------------------|-------------------------------------------------|
| test_record.py        | FileRecordTest, SnapshotTest               | FileRecord, Snapshot | Serialization, validation, ordering, equality   |
| test_baseline.py      | BaselineStoreTest                          | BaselineStore        | Atomic save, tolerant load                      |
| test_digest_cache.py  | DigestCacheTest, DigestCacheCollisionTest  | DigestCache          | Lookup validity, retain, path hash collisions   |
| test_acquire.py       | SnapshotAcquirerTest                       | SnapshotAcquirer     | Walk order, skipped paths, symlinks, exclusions |
"""
