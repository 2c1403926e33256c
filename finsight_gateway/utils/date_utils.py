"""Date manipulation utilities"""

from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def month_key(day: date) -> str:
    """Calendar month bucket in YYYY-MM form"""
    return f"{day.year:04d}-{day.month:02d}"


def window_start(hours: int, now: datetime | None = None) -> datetime:
    """Start of a trailing window ending at now"""
    return (now or utcnow()) - timedelta(hours=hours)
