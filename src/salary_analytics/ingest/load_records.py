"""Load normalized survey records into MongoDB with partitioned upserts.

Module notes:
- Each Dask partition is validated and upserted independently, keyed by
  `entry_id`.
- Every partition opens and closes its own MongoDB client.
"""
from __future__ import annotations

import logging
from typing import Any, cast

from dask import compute, delayed  # type: ignore[attr-defined]
import pandas as pd

from salary_analytics.config import Settings, get_settings
from salary_analytics.db import bulk_upsert, get_client, get_collection
from salary_analytics.ingest.survey import records_from_frame

log = logging.getLogger(__name__)

BATCH_SIZE = 1000


def _load_partition(pdf: pd.DataFrame, settings: Settings) -> tuple[int, int]:
    """Runs inside a worker (delayed task).

    Validates rows, upserts them into `salary_entries` and returns a tuple
    `(written, bad_rows)`.
    """
    if pdf is None or len(pdf) == 0:
        return 0, 0

    records, bad = records_from_frame(pdf)
    if not records:
        return 0, bad

    client = get_client(settings.mongo_uri, tls=settings.mongo_tls)
    try:
        collection = get_collection(settings, client)
        docs = [r.model_dump() for r in records]
        written = bulk_upsert(collection, docs, "entry_id", batch_size=BATCH_SIZE)
    finally:
        client.close()
    return written, bad


def load_records_to_mongo(ddf: Any, settings: Settings | None = None) -> tuple[int, int]:
    """Driver function.

    Uses `to_delayed()` so each partition is loaded by its own task.

    Returns:
        ``(written, bad)`` totals across partitions.
    """
    settings = settings or get_settings()
    log.info("Loading salary records into MongoDB...")

    tasks = [delayed(_load_partition)(part, settings) for part in ddf.to_delayed()]
    results = cast(Any, compute)(*tasks)

    written = sum(w for w, _ in results)
    bad = sum(b for _, b in results)

    log.info("Record load complete: written=%d bad=%d", written, bad)
    return int(written), int(bad)
