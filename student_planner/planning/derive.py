# Read-only views over tasks + holidays (dashboard, task list, planner grid).
#
# Inputs are lists of Task / Holiday records; nothing here mutates them or
# touches storage. Every function takes an optional `now` so callers (and
# tests) can pin the clock; default is the planner's local wall-clock time.
#
# Date rules:
#   - `date` drives "today" and period bucketing (string match on the key)
#   - `deadline` drives overdue / due-soon, read as local midnight of that day
#   - no deadline -> never overdue, never due soon

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from student_planner.models.schemas import DashboardStats, Holiday, Task
from student_planner.planner_calendar.grid import (
    _local_tz,
    days_in_month,
    format_date_key,
    now_local,
    parse_date_key,
)
from student_planner.utils.config import CONFIG

PERIODS = ("today", "week", "month")


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return now_local()
    if now.tzinfo is not None:
        # deadlines are naive local datetimes
        return now.astimezone(_local_tz()).replace(tzinfo=None)
    return now


def _deadline(task: Task) -> Optional[datetime]:
    if not task.deadline:
        return None
    try:
        return parse_date_key(task.deadline)
    except ValueError:
        return None


def tasks_on_date(tasks: Iterable[Task], date_key: str) -> List[Task]:
    return [t for t in tasks if t.date == date_key]


def holidays_on_date(holidays: Iterable[Holiday], date_key: str) -> List[Holiday]:
    return [h for h in holidays if h.date == date_key]


def merge_holidays(official: Iterable[Holiday], custom: Iterable[Holiday]) -> List[Holiday]:
    return [*official, *custom]


def todays_tasks(tasks: Iterable[Task], now: Optional[datetime] = None) -> List[Task]:
    return tasks_on_date(tasks, format_date_key(_now(now)))


def overdue_tasks(tasks: Iterable[Task], now: Optional[datetime] = None) -> List[Task]:
    now = _now(now)
    out = []
    for t in tasks:
        dl = _deadline(t)
        if dl is not None and dl < now and not t.completed:
            out.append(t)
    return out


def tasks_due_soon(
    tasks: Iterable[Task],
    within_hours: float = 24,
    now: Optional[datetime] = None,
) -> List[Task]:
    now = _now(now)
    until = now + timedelta(hours=within_hours)
    out = []
    for t in tasks:
        dl = _deadline(t)
        if dl is not None and now <= dl <= until and not t.completed:
            out.append(t)
    return out


def upcoming_holidays(
    holidays: Iterable[Holiday],
    within_days: int = 14,
    limit: int = 5,
    now: Optional[datetime] = None,
) -> List[Holiday]:
    """Holidays dated today .. today+within_days (inclusive), soonest first."""
    today = _now(now).date()
    first, last = format_date_key(today), format_date_key(today + timedelta(days=within_days))
    # date keys are zero-padded, so string order == calendar order
    hits = [h for h in holidays if first <= h.date <= last]
    hits.sort(key=lambda h: h.date)
    return hits[:limit]


def upcoming_tasks(
    tasks: Iterable[Task],
    days: int = 7,
    now: Optional[datetime] = None,
) -> List[Task]:
    """Incomplete tasks dated today .. today+days, soonest first."""
    today = _now(now).date()
    first, last = format_date_key(today), format_date_key(today + timedelta(days=days))
    hits = [t for t in tasks if first <= t.date <= last and not t.completed]
    hits.sort(key=lambda t: t.date)
    return hits


def period_bounds(period: str, now: Optional[datetime] = None):
    """(first_key, last_key) for today | week (Sun..Sat) | month, inclusive."""
    today = _now(now).date()
    if period == "today":
        key = format_date_key(today)
        return key, key
    if period == "week":
        # Python weekday(): Mon=0 … Sun=6 -> days since Sunday
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return format_date_key(start), format_date_key(start + timedelta(days=6))
    if period == "month":
        start = today.replace(day=1)
        end = today.replace(day=days_in_month(today))
        return format_date_key(start), format_date_key(end)
    raise ValueError(f"Unknown period {period!r}")


def tasks_by_period(tasks: Iterable[Task], period: str, now: Optional[datetime] = None) -> List[Task]:
    if period not in PERIODS:
        return list(tasks)
    first, last = period_bounds(period, now)
    return [t for t in tasks if first <= t.date <= last]


def task_list_view(
    tasks: Iterable[Task],
    period: str = "all",
    search: Optional[str] = None,
    show_completed: bool = True,
    now: Optional[datetime] = None,
) -> List[Task]:
    """
    Task list page: period filter -> search -> completed toggle -> sort.
    Sort keeps incomplete tasks first, then by date ascending (stable).
    """
    out = list(tasks)
    if period and period != "all":
        out = tasks_by_period(out, period, now)

    if search:
        needle = search.lower()
        out = [
            t for t in out
            if needle in t.title.lower() or needle in (t.description or "").lower()
        ]

    if not show_completed:
        out = [t for t in out if not t.completed]

    out.sort(key=lambda t: (t.completed, t.date))
    return out


HOLIDAY_KINDS = ("all", "official", "custom")


def holiday_list_view(
    holidays: Iterable[Holiday],
    search: Optional[str] = None,
    kind: str = "all",
) -> List[Holiday]:
    """Holiday list page: kind filter -> search over name/description/type -> sort by date."""
    if kind not in HOLIDAY_KINDS:
        raise ValueError(f"Unknown holiday kind {kind!r}")
    out = list(holidays)
    if kind != "all":
        out = [h for h in out if h.is_official == (kind == "official")]

    if search:
        needle = search.lower()
        out = [
            h for h in out
            if needle in h.name.lower()
            or needle in (h.description or "").lower()
            or needle in h.type.lower()
        ]

    out.sort(key=lambda h: h.date)
    return out


def task_counts(tasks: Iterable[Task], now: Optional[datetime] = None) -> dict:
    tasks = list(tasks)
    done = sum(1 for t in tasks if t.completed)
    return {
        "total": len(tasks),
        "completed": done,
        "pending": len(tasks) - done,
        "today": len(tasks_by_period(tasks, "today", now)),
    }


def dashboard_stats(
    tasks: Iterable[Task],
    official: Iterable[Holiday],
    custom: Iterable[Holiday],
    now: Optional[datetime] = None,
) -> DashboardStats:
    tasks, official, custom = list(tasks), list(official), list(custom)
    now = _now(now)
    win = CONFIG["windows"]
    upcoming = upcoming_holidays(
        merge_holidays(official, custom), win["upcoming_days"], win["upcoming_limit"], now
    )
    return DashboardStats(
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if t.completed),
        todays_tasks=len(todays_tasks(tasks, now)),
        overdue_tasks=len(overdue_tasks(tasks, now)),
        due_soon_tasks=len(tasks_due_soon(tasks, win["due_soon_hours"], now)),
        upcoming_holidays=len(upcoming),
        official_holidays=len(official),
        custom_holidays=len(custom),
    )
