"""
Helper utilities
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Tuple, Union


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day range"""
    since: date
    until: date

    def __post_init__(self):
        if self.until < self.since:
            raise ValueError(f"until ({self.until}) is before since ({self.since})")

    def to_unix_bounds(self) -> Tuple[int, int]:
        """Unix seconds from since 00:00:00 UTC to until 23:59:59 UTC."""
        start = datetime.combine(self.since, time.min, tzinfo=timezone.utc)
        end = datetime.combine(self.until, time(23, 59, 59), tzinfo=timezone.utc)
        return int(start.timestamp()), int(end.timestamp())


def parse_date(value: Union[str, date, datetime]) -> date:
    """Accept YYYY-MM-DD strings, ISO timestamps, dates or datetimes."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) > 10:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    return date.fromisoformat(text)


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers"""
    try:
        return numerator / denominator if denominator != 0 else default
    except (TypeError, ZeroDivisionError):
        return default
