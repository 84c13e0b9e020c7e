# Month grid geometry + date keys.
#
# Weeks start on Sunday (weekday index 0 = Sunday ... 6 = Saturday).
# Date keys are YYYY-MM-DD built from the LOCAL calendar fields; nothing here
# converts to UTC, so a task saved at 23:30 stays on the day it was made.

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from dateutil import tz

from student_planner.utils.config import CONFIG

GRID_SLOTS = 42  # 6 rows x 7 columns

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class DaySlot:
    date: date
    key: str
    in_current_month: bool
    is_today: bool


def _local_tz():
    name = CONFIG.get("timezone") or ""
    return tz.gettz(name) if name else tz.tzlocal()


def now_local() -> datetime:
    """Current wall-clock time in the planner's timezone (naive)."""
    return datetime.now(_local_tz()).replace(tzinfo=None)


def _as_local_date(d: DateLike) -> date:
    if isinstance(d, datetime):
        if d.tzinfo is not None:
            d = d.astimezone(_local_tz())
        return d.date()
    return d


def days_in_month(d: DateLike) -> int:
    d = _as_local_date(d)
    return calendar.monthrange(d.year, d.month)[1]


def first_weekday_of_month(d: DateLike) -> int:
    d = _as_local_date(d)
    # date.weekday(): Mon=0 ... Sun=6  ->  Sun=0 ... Sat=6
    return (date(d.year, d.month, 1).weekday() + 1) % 7


def format_date_key(d: DateLike) -> str:
    d = _as_local_date(d)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date_key(key: str) -> datetime:
    """YYYY-MM-DD -> datetime at local midnight. Raises ValueError if malformed."""
    if not isinstance(key, str):
        raise ValueError(f"date key must be a string, got {type(key).__name__}")
    return datetime.strptime(key.strip(), "%Y-%m-%d")


def is_date_key(value: str) -> bool:
    try:
        parse_date_key(value)
        return True
    except ValueError:
        return False


def shift_month(d: DateLike, delta: int) -> date:
    """First day of the month `delta` months away from d's month."""
    d = _as_local_date(d)
    idx = d.year * 12 + (d.month - 1) + delta
    return date(idx // 12, idx % 12 + 1, 1)


def build_month_grid(ref: DateLike, today: Optional[DateLike] = None) -> List[DaySlot]:
    """
    Build the 42 day-slots of the month containing `ref`:
    trailing days of the previous month, the month itself, leading days of
    the next month. `today` defaults to the local current date.
    """
    ref = _as_local_date(ref)
    today_d = _as_local_date(today) if today is not None else now_local().date()

    first = date(ref.year, ref.month, 1)
    start = first - timedelta(days=first_weekday_of_month(first))

    slots: List[DaySlot] = []
    for i in range(GRID_SLOTS):
        d = start + timedelta(days=i)
        in_month = d.month == ref.month and d.year == ref.year
        slots.append(DaySlot(
            date=d,
            key=format_date_key(d),
            in_current_month=in_month,
            is_today=in_month and d == today_d,
        ))
    return slots


def grid_weeks(slots: List[DaySlot]) -> List[List[DaySlot]]:
    return [slots[i:i + 7] for i in range(0, len(slots), 7)]


def format_date_display(d: DateLike) -> str:
    """e.g. 'Monday, March 10, 2025'"""
    d = _as_local_date(d)
    return f"{d.strftime('%A')}, {d.strftime('%B')} {d.day}, {d.year}"


def format_date_short(d: DateLike) -> str:
    """e.g. 'Mar 10'"""
    d = _as_local_date(d)
    return f"{d.strftime('%b')} {d.day}"


def month_title(d: DateLike) -> str:
    d = _as_local_date(d)
    return f"{d.strftime('%B')} {d.year}"
