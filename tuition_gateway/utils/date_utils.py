"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from typing import List

# Fixed English names so labels never depend on the process locale
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def add_months(year: int, month: int, offset: int) -> tuple[int, int]:
    """Shift a (year, month) pair by offset months"""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def month_label(year: int, month: int) -> str:
    """'March 2025' style label"""
    return f"{MONTH_NAMES[month - 1]} {year}"


def generate_month_range(start: date, count: int) -> List[tuple[int, int]]:
    """Consecutive (year, month) pairs beginning with start's month"""
    return [add_months(start.year, start.month, i) for i in range(count)]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and Z suffix"""
    moment = (moment or utc_now()).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def epoch_millis(moment: datetime | None = None) -> int:
    return int((moment or utc_now()).timestamp() * 1000)
