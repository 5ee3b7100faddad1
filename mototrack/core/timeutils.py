"""
Helpers de temps : UTC naïf (stockage SQLite) et timestamps en millisecondes
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Datetime UTC sans tzinfo, comparable aux valeurs relues depuis SQLite."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convertit un timestamp epoch en millisecondes en datetime UTC naïf."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).replace(tzinfo=None)


def datetime_to_ms(value: datetime) -> int:
    """Convertit un datetime (naïf = UTC) en timestamp epoch en millisecondes."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)
