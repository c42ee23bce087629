"""MongoDB helpers and bulk upsert utility.

Centralizes creation of Mongo clients, lookup of the `salary_entries`
collection and the batched upsert used by the survey importer.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

import certifi
from pymongo import MongoClient, UpdateOne
from pymongo.collection import Collection
from pymongo.database import Database

from salary_analytics.config import Settings

log = logging.getLogger(__name__)

SALARY_COLLECTION = "salary_entries"


def get_client(uri: str, tls: bool = False) -> MongoClient:
    """Return a configured PyMongo MongoClient for the provided URI.

    Datetimes are decoded as timezone-aware UTC values.

    Args:
        uri: MongoDB connection URI.
        tls: Connect over TLS, validating against the certifi CA bundle.

    Returns:
        Configured MongoClient instance.
    """
    options: dict[str, Any] = {
        "tz_aware": True,
        "serverSelectionTimeoutMS": 30000,
        "socketTimeoutMS": 30000,
        "connectTimeoutMS": 30000,
    }
    if tls:
        options.update(tls=True, tlsCAFile=certifi.where())
    return MongoClient(uri, **options)


def get_db(
    client: MongoClient[dict[str, Any]],
    db_name: str,
) -> Database[dict[str, Any]]:
    """Return the named Database instance from a MongoClient."""
    return client[db_name]


def get_collection(settings: Settings, client: MongoClient | None = None) -> Collection[dict[str, Any]]:
    """Return the `salary_entries` collection for the configured database.

    Args:
        settings: Loaded settings.
        client: Optional existing client; a new one is created otherwise.
    """
    if client is None:
        client = get_client(settings.mongo_uri, tls=settings.mongo_tls)
    return get_db(client, settings.mongo_db)[SALARY_COLLECTION]


def bulk_upsert(
    collection: Collection[dict[str, Any]],
    docs: Iterable[dict[str, Any]],
    key_field: str,
    batch_size: int = 1000,
) -> int:
    """Bulk upsert documents using `key_field` as the selector.

    Documents missing `key_field` are skipped. Write errors propagate.

    Args:
        collection: Target PyMongo collection.
        docs: Iterable of document dictionaries to upsert.
        key_field: Document key to use for upsert selector.
        batch_size: Number of ops per bulk_write call.

    Returns:
        Integer number of documents written.
    """
    ops: list[UpdateOne] = []
    written = 0

    for d in docs:
        if d.get(key_field) in (None, ""):
            log.warning("Skipping document without %s", key_field)
            continue

        ops.append(
            UpdateOne(
                {key_field: d[key_field]},
                {"$set": d},
                upsert=True,
            )
        )

        if len(ops) >= batch_size:
            collection.bulk_write(ops, ordered=False)
            written += len(ops)
            ops.clear()

    if ops:
        collection.bulk_write(ops, ordered=False)
        written += len(ops)

    return written
