"""Survey import helpers.

Parses raw survey exports, normalizes them partition-wise with Dask into the
stored record schema, and upserts them into MongoDB.
"""
