"""Helpers and utilities."""

from typing import Iterable, List, Optional
from datetime import datetime
from pytz import UTC


def get_tzaware_utc_now() -> datetime:
    """Generate a datetime for the current moment in UTC."""
    return datetime.now(UTC)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (e.g. as returned by SQLite)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def cap(value: Optional[str], limit: int, ellipsis: bool = False) \
        -> Optional[str]:
    """Truncate ``value`` to ``limit`` characters."""
    if value is None or len(value) <= limit:
        return value
    if ellipsis and limit > 3:
        return value[:limit - 3] + '...'
    return value[:limit]


def normalize_csv(value: Optional[str]) -> Optional[str]:
    """Strip whitespace and empty entries from a comma-separated list."""
    if not value:
        return None
    entries = [part.strip() for part in value.split(',')]
    normalized = ', '.join(part for part in entries if part)
    return normalized or None


def split_csv(value: Optional[str]) -> List[str]:
    """Split a comma-separated list, dropping empty entries."""
    if not value:
        return []
    return [part.strip() for part in value.split(',') if part.strip()]


def join_names(names: Iterable[str]) -> str:
    """Join names with commas, using an ampersand before the last one."""
    names = [name for name in names if name and name.strip()]
    if len(names) < 2:
        return ''.join(names)
    return ', '.join(names[:-1]) + ' & ' + names[-1]


def format_movie_time(frames: int, frame_rate: Optional[float]) -> str:
    """
    Render the length of a movie, e.g. ``05:23.45`` or ``1:02:03.40``.

    Days and hours are only included when the movie is that long.
    """
    if not frame_rate:
        return '00:00.00'
    total = frames / frame_rate
    minutes, seconds = divmod(total, 60)
    hours, minutes = divmod(int(minutes), 60)
    days, hours = divmod(hours, 24)
    if days:
        return f'{days}:{hours:02d}:{minutes:02d}:{seconds:05.2f}'
    if hours:
        return f'{hours}:{minutes:02d}:{seconds:05.2f}'
    return f'{minutes:02d}:{seconds:05.2f}'
