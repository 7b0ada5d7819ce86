"""General-purpose utility helpers."""
import secrets
from datetime import datetime, timezone

def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def new_hex_token(nbytes: int = 16) -> str:
    """Random hex token, e.g. for anonymous preload ids."""
    return secrets.token_hex(nbytes)

def parse_int(value: str | None, default: int = 0) -> int:
    """Safely parse string to int."""
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default
