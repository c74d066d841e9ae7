from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    Every timestamp column is stored naive-UTC so comparisons behave the
    same on PostgreSQL and SQLite.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
