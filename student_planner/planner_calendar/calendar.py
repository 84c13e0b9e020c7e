# Task + custom holiday record operations.
#
# Every function takes the current collection and returns a NEW list; the
# caller (PlannerSession) swaps the whole collection and re-persists it.

from typing import Dict, List, Optional, Tuple

from student_planner.models.schemas import (
    DEFAULT_HOLIDAY_TYPE,
    HOLIDAY_TYPES,
    Holiday,
    Task,
    new_id,
)

TASK_FIELDS = ("title", "date", "deadline", "description", "completed")
HOLIDAY_FIELDS = ("name", "date", "type", "description")


def create_task(
    title: str,
    date: str,
    deadline: Optional[str] = None,
    description: Optional[str] = None,
) -> Task:
    """New incomplete task with a fresh id. Raises ValidationError on bad input."""
    return Task(
        title=title,
        date=date,
        deadline=deadline or None,
        description=description or None,
    )


def add_task(tasks: List[Task], task: Task) -> List[Task]:
    return [*tasks, task]


def update_task(tasks: List[Task], task_id: str, **fields) -> Tuple[List[Task], Optional[Task]]:
    """Update editable fields (title, date, deadline, description, completed)."""
    changes = {k: v for k, v in fields.items() if k in TASK_FIELDS}
    out: List[Task] = []
    updated = None
    for t in tasks:
        if t.id == task_id and updated is None:
            t = Task.model_validate({**t.to_json(), **changes})
            updated = t
        out.append(t)
    return out, updated


def toggle_task(tasks: List[Task], task_id: str) -> Tuple[List[Task], Optional[Task]]:
    current = find_by_id(tasks, task_id)
    if current is None:
        return list(tasks), None
    return update_task(tasks, task_id, completed=not current.completed)


def delete_by_id(items: List, item_id: str) -> Tuple[List, bool]:
    kept = [x for x in items if x.id != item_id]
    return kept, len(kept) != len(items)


def find_by_id(items: List, item_id: str):
    for x in items:
        if x.id == item_id:
            return x
    return None


def _check_holiday_type(holiday_type: str) -> str:
    if holiday_type not in HOLIDAY_TYPES:
        raise ValueError(
            f"Unknown holiday type {holiday_type!r}; expected one of {', '.join(HOLIDAY_TYPES)}"
        )
    return holiday_type


def create_custom_holiday(
    name: str,
    date: str,
    holiday_type: str = DEFAULT_HOLIDAY_TYPE,
    description: Optional[str] = None,
) -> Holiday:
    return Holiday(
        id=new_id(),
        name=name,
        date=date,
        type=_check_holiday_type(holiday_type),
        description=description or "",
        is_official=False,
    )


def add_holiday(holidays: List[Holiday], holiday: Holiday) -> List[Holiday]:
    return [*holidays, holiday]


def update_custom_holiday(
    holidays: List[Holiday], holiday_id: str, **fields
) -> Tuple[List[Holiday], Optional[Holiday]]:
    """Update name/date/type/description of a custom (non-official) holiday."""
    changes: Dict = {k: v for k, v in fields.items() if k in HOLIDAY_FIELDS}
    if "type" in changes:
        _check_holiday_type(changes["type"])
    out: List[Holiday] = []
    updated = None
    for h in holidays:
        if h.id == holiday_id and not h.is_official and updated is None:
            h = Holiday.model_validate({**h.to_json(), **changes})
            updated = h
        out.append(h)
    return out, updated
