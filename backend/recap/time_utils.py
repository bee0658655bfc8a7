from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_business_date(value: Optional[str], tz_name: str) -> Optional[datetime]:
    """
    Parse a sale/expenditure business date into UTC-naive.

    A bare "YYYY-MM-DD" means local midnight in the display timezone, so a
    back-dated entry lands on the day the operator picked. Anything with a
    time component goes through parse_iso_datetime.
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    if len(s) == 10:
        day = date.fromisoformat(s)
        local = datetime(day.year, day.month, day.day, tzinfo=ZoneInfo(tz_name))
        return local.astimezone(timezone.utc).replace(tzinfo=None)
    return parse_iso_datetime(s)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def to_local(dt: datetime, tz_name: str) -> datetime:
    """Convert a stored UTC-naive datetime to an aware datetime in tz_name."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(ZoneInfo(tz_name))


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move (year, month) by delta months, crossing year boundaries."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_bounds(year: int, month: int, tz_name: str) -> tuple[datetime, datetime]:
    """
    Half-open UTC-naive range [start, end) covering a local calendar month.
    """
    tz = ZoneInfo(tz_name)
    next_year, next_month = shift_month(year, month, 1)
    start = datetime(year, month, 1, tzinfo=tz)
    end = datetime(next_year, next_month, 1, tzinfo=tz)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def year_bounds(year: int, tz_name: str) -> tuple[datetime, datetime]:
    """Half-open UTC-naive range [start, end) covering a local calendar year."""
    tz = ZoneInfo(tz_name)
    start = datetime(year, 1, 1, tzinfo=tz)
    end = datetime(year + 1, 1, 1, tzinfo=tz)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def parse_month_key(value: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse "YYYY-MM" into (year, month). Returns None for empty or "all"."""
    if value is None:
        return None
    s = value.strip()
    if not s or s == "all":
        return None
    year_part, _, month_part = s.partition("-")
    year, month = int(year_part), int(month_part)
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    return year, month


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def current_month(tz_name: str) -> tuple[int, int]:
    """(year, month) of 'now' in the display timezone."""
    local = to_local(utcnow(), tz_name)
    return local.year, local.month
