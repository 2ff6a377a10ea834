from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    UTC "naive": SQLite no guarda tz y due_date se compara contra este valor.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
