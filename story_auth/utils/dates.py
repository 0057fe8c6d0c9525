from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC now, matching what MongoDB hands back for stored dates."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def from_timestamp(seconds) -> datetime:
    """Naive UTC datetime from a Unix timestamp (e.g. a JWT ``exp`` claim)."""
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc).replace(tzinfo=None)


def to_timestamp(value: datetime) -> int:
    """Unix timestamp of a naive UTC datetime."""
    return int(value.replace(tzinfo=timezone.utc).timestamp())
