"""Exception hierarchy shared by the store adapters and the analytics engine."""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for every error raised by salary_analytics."""


class StoreError(AnalyticsError):
    """The record store could not answer a query (connectivity, bad pipeline...)."""


class AnalyticsCancelled(AnalyticsError):
    """The caller cancelled an in-flight analytics computation."""


class ImportFormatError(AnalyticsError, ValueError):
    """A raw survey row could not be converted into a salary record."""
