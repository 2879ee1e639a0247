from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time without tzinfo; every timestamp column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
