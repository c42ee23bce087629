"""Record-store adapters.

`RecordStore` is the read-only contract the analytics engine consumes.
`MongoRecordStore` answers it with aggregation pipelines over the
`salary_entries` collection; `FrameRecordStore` answers it from an in-memory
pandas snapshot (tests, offline analysis of survey exports).
"""
from __future__ import annotations

from salary_analytics.store.base import FILTER_FIELDS, RecordStore, filter_fields
from salary_analytics.store.frame import FrameRecordStore
from salary_analytics.store.mongo import MongoRecordStore

__all__ = [
    "FILTER_FIELDS",
    "FrameRecordStore",
    "MongoRecordStore",
    "RecordStore",
    "filter_fields",
]
