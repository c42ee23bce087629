"""salary_analytics package.

Turns salary-survey records stored in MongoDB into compensation analytics:
per-dimension summary statistics, top-paying rankings, salary-range
histograms and career-progression statistics, fronted by a TTL cache.

Architecture:
- `store` adapts the record store (MongoDB or an in-memory pandas frame)
- `analytics` aggregates, composes, caches and exposes the query facade
- `ingest` imports raw survey exports, partitioned with Dask
- Pydantic models describe records and snapshots
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
