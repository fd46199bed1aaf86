"""Small helpers shared by the offer services."""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def truncate(value: str, limit: int) -> str:
    """Cut a string to at most `limit` characters; None becomes ''."""
    if value is None:
        return ""
    return value[:limit]
