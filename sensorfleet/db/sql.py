"""
Dialect-aware SQL helpers.

Timestamps are stored as Unix seconds (BIGINT). Bucketing them into
calendar periods needs database functions that differ between PostgreSQL
(production) and SQLite (tests), so the expression is compiled per dialect.
"""

from sqlalchemy import DateTime
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.expression import FunctionElement

from sensorfleet.core.config import ALLOWED_BUCKETS

_SQLITE_BUCKET_MODIFIERS = {
    "minute": ("%Y-%m-%d %H:%M:00",),
    "hour": ("%Y-%m-%d %H:00:00",),
    "day": ("%Y-%m-%d 00:00:00",),
    # 'weekday 0' moves forward to Sunday, then back to that week's Monday
    "week": ("%Y-%m-%d 00:00:00", "weekday 0", "-6 days"),
    "month": ("%Y-%m-01 00:00:00",),
}


class InvalidIntervalError(ValueError):
    """Raised when an aggregation bucket granularity is not supported."""
    pass


def validate_interval(interval: str) -> str:
    if interval not in ALLOWED_BUCKETS:
        raise InvalidIntervalError(
            f"Invalid interval: {interval}. Allowed intervals: {', '.join(ALLOWED_BUCKETS)}"
        )
    return interval


class bucket_start(FunctionElement):
    """Start of the calendar bucket containing an epoch-seconds column."""

    type = DateTime()
    name = "bucket_start"
    # the interval is rendered as a literal, so compiled SQL must not be shared
    inherit_cache = False

    def __init__(self, interval: str, column):
        self.interval = validate_interval(interval)
        super().__init__(column)


@compiles(bucket_start, "postgresql")
def _bucket_start_postgresql(element, compiler, **kw):
    column = compiler.process(element.clauses, **kw)
    return f"date_trunc('{element.interval}', to_timestamp({column}))"


@compiles(bucket_start, "sqlite")
def _bucket_start_sqlite(element, compiler, **kw):
    column = compiler.process(element.clauses, **kw)
    fmt, *modifiers = _SQLITE_BUCKET_MODIFIERS[element.interval]
    args = ", ".join([f"'{fmt}'", column, "'unixepoch'"] + [f"'{m}'" for m in modifiers])
    return f"strftime({args})"
