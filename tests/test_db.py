from __future__ import annotations

from typing import Any

import pytest
from pymongo import UpdateOne
from pymongo.errors import BulkWriteError

from salary_analytics.config import Settings
from salary_analytics.db import SALARY_COLLECTION, bulk_upsert, get_collection


class RecordingCollection:
    def __init__(self, fail: bool = False) -> None:
        self.batches: list[list[Any]] = []
        self.fail = fail

    def bulk_write(self, ops: list[Any], ordered: bool = True) -> None:
        if self.fail:
            raise BulkWriteError({"writeErrors": [{"errmsg": "duplicate"}]})
        self.batches.append(list(ops))


def test_bulk_upsert_batches_and_skips_docs_without_key() -> None:
    collection = RecordingCollection()
    docs = [{"entry_id": str(i), "salary_min": i + 1} for i in range(5)]
    docs.append({"salary_min": 9})
    docs.append({"entry_id": "", "salary_min": 9})

    written = bulk_upsert(collection, docs, "entry_id", batch_size=2)  # type: ignore[arg-type]

    assert written == 5
    assert [len(b) for b in collection.batches] == [2, 2, 1]
    first = collection.batches[0][0]
    assert first == UpdateOne({"entry_id": "0"}, {"$set": {"entry_id": "0", "salary_min": 1}}, upsert=True)


def test_bulk_upsert_propagates_write_errors() -> None:
    with pytest.raises(BulkWriteError):
        bulk_upsert(RecordingCollection(fail=True), [{"entry_id": "a"}], "entry_id")  # type: ignore[arg-type]


def test_get_collection_uses_configured_database() -> None:
    class FakeClient(dict):
        def __missing__(self, name: str) -> dict[str, str]:
            return {SALARY_COLLECTION: f"{name}.{SALARY_COLLECTION}"}

    settings = Settings(mongo_uri="mongodb://unused", mongo_db="surveys")
    assert get_collection(settings, FakeClient()) == "surveys.salary_entries"  # type: ignore[arg-type]
