"""MongoDB-backed record store.

Every query is an aggregation pipeline (or a projected ``find``) over the
`salary_entries` collection. Pipelines are built by the module-level functions
below so they can be inspected without a server.

Expectations:
- Documents follow `salary_analytics.models.SalaryRecord` field names.
- Grouped statistics are over `salary_min`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from salary_analytics.config import Settings
from salary_analytics.db import get_client, get_collection
from salary_analytics.errors import StoreError
from salary_analytics.models import (
    AnalyticsFilter,
    CategoryStat,
    CombinedStats,
    JobChangeRecord,
    RaiseTimelineRecord,
)
from salary_analytics.store.base import SALARY_FIELD, TECH_FIELD, filter_fields

log = logging.getLogger(__name__)

HAS_RAISES = {"raises.0": {"$exists": True}}
NON_EMPTY = {"$exists": True, "$nin": ["", None]}


# =========================================================
# PIPELINE BUILDERS
# =========================================================

def build_filter_query(flt: AnalyticsFilter | None) -> dict[str, Any]:
    """Return the ``$match`` body for the populated filter fields."""
    return dict(filter_fields(flt))


def group_stage(field: str) -> dict[str, Any]:
    """Return a ``$group`` stage computing avg/min/max/count of salary_min per value."""
    salary = f"${SALARY_FIELD}"
    return {
        "$group": {
            "_id": f"${field}",
            "average": {"$avg": salary},
            "min": {"$min": salary},
            "max": {"$max": salary},
            "count": {"$sum": 1},
        }
    }


def _grouped(field: str) -> list[dict[str, Any]]:
    return [
        {"$match": {field: NON_EMPTY}},
        group_stage(field),
        {"$sort": {"_id": 1}},
    ]


def dimension_pipeline(field: str, flt: AnalyticsFilter | None) -> list[dict[str, Any]]:
    """Pipeline grouping filtered records by a single-valued field."""
    return [{"$match": build_filter_query(flt)}, *_grouped(field)]


def technology_pipeline(flt: AnalyticsFilter | None) -> list[dict[str, Any]]:
    """Pipeline that explodes `tech_stack` and then groups by tag."""
    match = {TECH_FIELD: {"$exists": True, "$type": "array", "$ne": []}}
    match.update(build_filter_query(flt))
    return [
        {"$match": match},
        {"$unwind": f"${TECH_FIELD}"},
        *_grouped(TECH_FIELD),
    ]


def count_average_pipeline(flt: AnalyticsFilter | None) -> list[dict[str, Any]]:
    return [
        {"$match": build_filter_query(flt)},
        {
            "$group": {
                "_id": None,
                "count": {"$sum": 1},
                "average": {"$avg": f"${SALARY_FIELD}"},
            }
        },
    ]


def combined_pipeline(flt: AnalyticsFilter | None, dimensions: Mapping[str, str]) -> list[dict[str, Any]]:
    """Single ``$facet`` pipeline returning count, average and every dimension.

    Args:
        flt: Filter applied once before the facets.
        dimensions: Mapping of facet name to stored field.
    """
    facets: dict[str, Any] = {
        "totalCount": [{"$count": "total"}],
        "overallAverage": [
            {"$group": {"_id": None, "average": {"$avg": f"${SALARY_FIELD}"}}},
        ],
    }
    for key, field in dimensions.items():
        facets[key] = _grouped(field)

    return [
        {"$match": build_filter_query(flt)},
        {"$facet": facets},
    ]


def to_category_stats(docs: list[dict[str, Any]]) -> list[CategoryStat]:
    """Convert ``$group`` output documents into `CategoryStat` objects."""
    return [
        CategoryStat(
            category=str(d["_id"]),
            average=float(d.get("average") or 0.0),
            min=float(d.get("min") or 0.0),
            max=float(d.get("max") or 0.0),
            count=int(d.get("count") or 0),
        )
        for d in docs
    ]


def parse_combined(doc: dict[str, Any] | None, dimensions: Mapping[str, str]) -> CombinedStats:
    """Decode the single document produced by `combined_pipeline`."""
    doc = doc or {}
    total = doc.get("totalCount") or []
    average = doc.get("overallAverage") or []
    return CombinedStats(
        total_count=int(total[0]["total"]) if total else 0,
        overall_average=float(average[0].get("average") or 0.0) if average else 0.0,
        by_dimension={key: to_category_stats(doc.get(key) or []) for key in dimensions},
    )


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        log.error("MongoDB query failed (%s): %s", action, exc)
        raise StoreError(f"failed to {action}: {exc}") from exc


# =========================================================
# STORE
# =========================================================

class MongoRecordStore:
    """`RecordStore` over a PyMongo collection.

    Args:
        collection: The `salary_entries` collection.
        client: Client to close with the store; left open when ``None``.
    """

    def __init__(self, collection: Collection[dict[str, Any]], client: MongoClient | None = None) -> None:
        self._collection = collection
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoRecordStore":
        client = get_client(settings.mongo_uri, tls=settings.mongo_tls)
        return cls(get_collection(settings, client), client)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _aggregate(self, pipeline: list[dict[str, Any]], action: str) -> list[dict[str, Any]]:
        with _store_errors(action):
            return list(self._collection.aggregate(pipeline))

    def group_by_dimension(self, dimension: str, flt: AnalyticsFilter | None = None) -> list[CategoryStat]:
        docs = self._aggregate(dimension_pipeline(dimension, flt), f"aggregate salary by {dimension}")
        return to_category_stats(docs)

    def group_by_technology(self, flt: AnalyticsFilter | None = None) -> list[CategoryStat]:
        docs = self._aggregate(technology_pipeline(flt), "aggregate salary by tech")
        return to_category_stats(docs)

    def count_and_average(self, flt: AnalyticsFilter | None = None) -> tuple[int, float]:
        docs = self._aggregate(count_average_pipeline(flt), "count salary entries")
        if not docs:
            return 0, 0.0
        return int(docs[0]["count"]), float(docs[0].get("average") or 0.0)

    def combined(self, flt: AnalyticsFilter | None, dimensions: Mapping[str, str]) -> CombinedStats:
        docs = self._aggregate(combined_pipeline(flt, dimensions), "execute combined analytics query")
        return parse_combined(docs[0] if docs else None, dimensions)

    def records_with_raises(self) -> list[JobChangeRecord]:
        projection = {"_id": 0, "salary_min": 1, "salary_max": 1, "raises": 1}
        with _store_errors("find job change data"):
            docs = list(self._collection.find(HAS_RAISES, projection))
        return [JobChangeRecord.model_validate(d) for d in docs]

    def records_with_raise_timeline(self) -> list[RaiseTimelineRecord]:
        projection = {"_id": 0, "raises": 1, "start_time": 1, "end_time": 1}
        with _store_errors("find raise data"):
            docs = list(self._collection.find(HAS_RAISES, projection))
        return [RaiseTimelineRecord.model_validate(d) for d in docs]

    def distinct_values(self, dimension: str) -> list[str]:
        with _store_errors(f"get available {dimension} values"):
            values = self._collection.distinct(dimension)
        return sorted(str(v) for v in values if v not in (None, ""))
