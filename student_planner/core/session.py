# Planner session: owns tasks, custom holidays and the visible month.
#
# - loads persisted collections once (mount)
# - every edit builds a new list, swaps it in and re-persists that collection
# - official holidays are fetched per visible year and cached once a year
#   comes back non-empty (a failed fetch is retried on the next visit);
#   never persisted; a response for a year that is no longer visible is dropped

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Protocol

from pydantic import ValidationError

from student_planner.models.schemas import Holiday, Task
from student_planner.planner_calendar import calendar as cal
from student_planner.planner_calendar.grid import (
    DaySlot,
    build_month_grid,
    now_local,
    parse_date_key,
    shift_month,
)
from student_planner.planning import derive
from student_planner.utils.persistance import (
    CUSTOM_HOLIDAYS_KEY,
    TASKS_KEY,
    KeyValueStore,
    load,
    save,
)

logger = logging.getLogger(__name__)


class HolidayFetcher(Protocol):
    def fetch_holidays(self, year: int) -> List[Holiday]: ...


@dataclass(frozen=True)
class DayCell:
    slot: DaySlot
    tasks: List[Task]
    holidays: List[Holiday]


def _parse_records(model, items, key: str) -> list:
    if not isinstance(items, list):
        logger.warning("Stored %s is not a list; ignoring it", key)
        return []
    out = []
    for item in items:
        try:
            out.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping invalid stored %s record %r: %s", key, item, e)
    return out


class PlannerSession:
    def __init__(self,
                 store: Optional[KeyValueStore] = None,
                 holiday_source: Optional[HolidayFetcher] = None,
                 today: Optional[date] = None):
        self.store = store
        self.holiday_source = holiday_source
        ref = today or now_local().date()
        self.visible_month: date = ref.replace(day=1)

        self.tasks: List[Task] = []
        self.custom_holidays: List[Holiday] = []
        self.official_holidays: List[Holiday] = []
        self._holidays_by_year: Dict[int, List[Holiday]] = {}

    # -------------------------
    # Mount / persistence
    # -------------------------
    def load(self) -> "PlannerSession":
        self.tasks = _parse_records(Task, load(TASKS_KEY, [], self.store), TASKS_KEY)
        self.custom_holidays = [
            h.model_copy(update={"is_official": False})
            for h in _parse_records(Holiday, load(CUSTOM_HOLIDAYS_KEY, [], self.store), CUSTOM_HOLIDAYS_KEY)
        ]
        self.refresh_holidays()
        return self

    def _set_tasks(self, tasks: List[Task]) -> None:
        self.tasks = tasks
        save(TASKS_KEY, [t.to_json() for t in tasks], self.store)

    def _set_custom_holidays(self, holidays: List[Holiday]) -> None:
        self.custom_holidays = holidays
        save(CUSTOM_HOLIDAYS_KEY, [h.to_json() for h in holidays], self.store)

    # -------------------------
    # Official holidays
    # -------------------------
    def refresh_holidays(self) -> List[Holiday]:
        """Official holidays of the visible year; a year is fetched until it comes back non-empty."""
        year = self.visible_month.year
        if year in self._holidays_by_year:
            self.official_holidays = self._holidays_by_year[year]
            return self.official_holidays
        fetched = self.holiday_source.fetch_holidays(year) if self.holiday_source else []
        self.receive_holidays(year, fetched)
        return self.official_holidays

    def receive_holidays(self, year: int, holidays: List[Holiday]) -> bool:
        """Apply a holiday response tagged with its year. Stale years are cached but not shown."""
        # an empty answer is what a failed fetch looks like, so it is retried next time
        if holidays:
            self._holidays_by_year[year] = list(holidays)
        if year != self.visible_month.year:
            logger.debug("Dropping holiday response for %s (showing %s)", year, self.visible_month.year)
            return False
        self.official_holidays = list(holidays)
        return True

    @property
    def all_holidays(self) -> List[Holiday]:
        return derive.merge_holidays(self.official_holidays, self.custom_holidays)

    # -------------------------
    # Navigation
    # -------------------------
    def show_month(self, year: int, month: int) -> date:
        previous_year = self.visible_month.year
        self.visible_month = date(year, month, 1)
        if year != previous_year:
            self.refresh_holidays()
        return self.visible_month

    def next_month(self) -> date:
        d = shift_month(self.visible_month, 1)
        return self.show_month(d.year, d.month)

    def prev_month(self) -> date:
        d = shift_month(self.visible_month, -1)
        return self.show_month(d.year, d.month)

    def go_today(self) -> date:
        today = now_local().date()
        return self.show_month(today.year, today.month)

    def month_grid(self, today: Optional[date] = None) -> List[DayCell]:
        holidays = self.all_holidays
        return [
            DayCell(
                slot=slot,
                tasks=derive.tasks_on_date(self.tasks, slot.key),
                holidays=derive.holidays_on_date(holidays, slot.key),
            )
            for slot in build_month_grid(self.visible_month, today)
        ]

    def day_details(self, date_key: str) -> DayCell:
        d = parse_date_key(date_key).date()
        slot = DaySlot(date=d, key=date_key,
                       in_current_month=(d.year, d.month) == (self.visible_month.year, self.visible_month.month),
                       is_today=d == now_local().date())
        return DayCell(slot=slot,
                       tasks=derive.tasks_on_date(self.tasks, date_key),
                       holidays=derive.holidays_on_date(self.all_holidays, date_key))

    # -------------------------
    # Tasks
    # -------------------------
    def add_task(self, title: str, date: str, deadline: Optional[str] = None,
                 description: Optional[str] = None) -> Task:
        task = cal.create_task(title, date, deadline, description)
        self._set_tasks(cal.add_task(self.tasks, task))
        return task

    def update_task(self, task_id: str, **fields) -> Optional[Task]:
        tasks, updated = cal.update_task(self.tasks, task_id, **fields)
        if updated:
            self._set_tasks(tasks)
        return updated

    def toggle_task(self, task_id: str) -> Optional[Task]:
        tasks, updated = cal.toggle_task(self.tasks, task_id)
        if updated:
            self._set_tasks(tasks)
        return updated

    def delete_task(self, task_id: str) -> bool:
        tasks, changed = cal.delete_by_id(self.tasks, task_id)
        if changed:
            self._set_tasks(tasks)
        return changed

    # -------------------------
    # Custom holidays
    # -------------------------
    def add_custom_holiday(self, name: str, date: str, holiday_type: str = "Festival",
                           description: Optional[str] = None) -> Holiday:
        holiday = cal.create_custom_holiday(name, date, holiday_type, description)
        self._set_custom_holidays(cal.add_holiday(self.custom_holidays, holiday))
        return holiday

    def update_custom_holiday(self, holiday_id: str, **fields) -> Optional[Holiday]:
        holidays, updated = cal.update_custom_holiday(self.custom_holidays, holiday_id, **fields)
        if updated:
            self._set_custom_holidays(holidays)
        return updated

    def delete_custom_holiday(self, holiday_id: str) -> bool:
        holidays, changed = cal.delete_by_id(self.custom_holidays, holiday_id)
        if changed:
            self._set_custom_holidays(holidays)
        return changed

    # -------------------------
    # Views
    # -------------------------
    def dashboard(self, now: Optional[datetime] = None):
        return derive.dashboard_stats(self.tasks, self.official_holidays, self.custom_holidays, now)
