import json
import unittest
from datetime import date, datetime
from unittest.mock import patch

from pydantic import ValidationError

from student_planner.core.session import PlannerSession
from student_planner.models.schemas import Holiday
from student_planner.utils.persistance import CUSTOM_HOLIDAYS_KEY, TASKS_KEY, MemoryStore


def _official(name, day):
    return Holiday(id=name, name=name, date=day, type="Regular holiday", is_official=True)


class _FakeSource:
    def __init__(self, by_year=None):
        self.by_year = by_year or {}
        self.calls = []

    def fetch_holidays(self, year):
        self.calls.append(year)
        return list(self.by_year.get(year, []))


class TestPlannerSession(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()
        self.source = _FakeSource({
            2025: [_official("Araw ng Kagitingan", "2025-04-09")],
            2026: [_official("New Year's Day", "2026-01-01")],
        })

    def _session(self, today=date(2025, 3, 12)) -> PlannerSession:
        return PlannerSession(store=self.store, holiday_source=self.source, today=today).load()

    def test_add_task_scenario(self) -> None:
        s = self._session()
        t = s.add_task("Essay draft", "2025-03-10")
        self.assertFalse(t.completed)
        self.assertTrue(t.id)
        self.assertIsNone(t.deadline)
        cell = s.day_details("2025-03-10")
        self.assertEqual([x.id for x in cell.tasks], [t.id])

    def test_created_at_uses_planner_clock(self) -> None:
        s = self._session()
        with patch("student_planner.models.schemas.now_local", return_value=datetime(2025, 3, 12, 8, 0, 5)):
            t = s.add_task("Essay draft", "2025-03-10")
        self.assertEqual(t.created_at, "2025-03-12T08:00:05")

    def test_edits_are_persisted_and_reloaded(self) -> None:
        s = self._session()
        a = s.add_task("Essay draft", "2025-03-10", deadline="2025-03-09", description="intro")
        b = s.add_task("Lab report", "2025-03-11")
        s.toggle_task(b.id)

        stored = json.loads(self.store.get_item(TASKS_KEY))
        self.assertEqual([x["id"] for x in stored], [a.id, b.id])
        self.assertIn("createdAt", stored[0])

        again = self._session()
        self.assertEqual(again.tasks, s.tasks)
        self.assertTrue(again.tasks[1].completed)
        # deadline before date is accepted as-is
        self.assertEqual(again.tasks[0].deadline, "2025-03-09")

    def test_edits_replace_the_collection(self) -> None:
        s = self._session()
        before = s.tasks
        s.add_task("Read ch. 3", "2025-03-13")
        self.assertIsNot(s.tasks, before)
        self.assertEqual(before, [])

    def test_update_and_delete_task(self) -> None:
        s = self._session()
        t = s.add_task("Essay draft", "2025-03-10")
        updated = s.update_task(t.id, title="Essay final", date="2025-03-14", id="hijack")
        self.assertEqual((updated.id, updated.title, updated.date), (t.id, "Essay final", "2025-03-14"))
        self.assertEqual(updated.created_at, t.created_at)
        self.assertIsNone(s.update_task("missing", title="x"))
        self.assertIsNone(s.toggle_task("missing"))

        self.assertTrue(s.delete_task(t.id))
        self.assertFalse(s.delete_task(t.id))
        self.assertEqual(json.loads(self.store.get_item(TASKS_KEY)), [])

    def test_invalid_task_is_never_created(self) -> None:
        s = self._session()
        for title, day in (("", "2025-03-10"), ("   ", "2025-03-10"), ("Essay", ""), ("Essay", "2025-02-30")):
            with self.subTest(title=title, day=day):
                with self.assertRaises(ValidationError):
                    s.add_task(title, day)
        self.assertEqual(s.tasks, [])
        self.assertIsNone(self.store.get_item(TASKS_KEY))

    def test_custom_holidays(self) -> None:
        s = self._session()
        h = s.add_custom_holiday("Foundation Day", "2025-03-20", "School Event")
        self.assertFalse(h.is_official)
        self.assertEqual([x.name for x in s.all_holidays], ["Araw ng Kagitingan", "Foundation Day"])

        renamed = s.update_custom_holiday(h.id, name="Founders' Day", type="Other")
        self.assertEqual((renamed.name, renamed.type), ("Founders' Day", "Other"))
        with self.assertRaises(ValueError):
            s.add_custom_holiday("Bad", "2025-03-21", "Birthday")

        stored = json.loads(self.store.get_item(CUSTOM_HOLIDAYS_KEY))
        self.assertEqual([(x["name"], x["isOfficial"]) for x in stored], [("Founders' Day", False)])

        self.assertTrue(s.delete_custom_holiday(h.id))
        self.assertEqual(s.custom_holidays, [])

    def test_official_holidays_are_read_only(self) -> None:
        s = self._session()
        official = s.official_holidays[0]
        self.assertFalse(s.delete_custom_holiday(official.id))
        self.assertIsNone(s.update_custom_holiday(official.id, name="Renamed"))
        self.assertEqual(s.official_holidays, [official])
        self.assertIsNone(self.store.get_item(CUSTOM_HOLIDAYS_KEY))

    def test_official_holidays_follow_visible_year(self) -> None:
        s = self._session(today=date(2025, 12, 1))
        self.assertEqual(self.source.calls, [2025])
        s.next_month()
        self.assertEqual(s.visible_month, date(2026, 1, 1))
        self.assertEqual([h.name for h in s.official_holidays], ["New Year's Day"])
        s.prev_month()
        s.prev_month()
        self.assertEqual(s.visible_month, date(2025, 11, 1))
        # each year fetched once
        self.assertEqual(self.source.calls, [2025, 2026])
        self.assertEqual([h.name for h in s.official_holidays], ["Araw ng Kagitingan"])

    def test_stale_year_response_is_dropped(self) -> None:
        s = self._session()
        s.show_month(2026, 1)
        applied = s.receive_holidays(2025, [_official("Late", "2025-06-12")])
        self.assertFalse(applied)
        self.assertEqual([h.name for h in s.official_holidays], ["New Year's Day"])

    def test_empty_year_is_fetched_again(self) -> None:
        class _FlakySource:
            def __init__(self):
                self.calls = []

            def fetch_holidays(self, year):
                self.calls.append(year)
                if year == 2025 and self.calls.count(2025) == 1:
                    return []
                return [_official("Araw ng Kagitingan", f"{year}-04-09")]

        source = _FlakySource()
        s = PlannerSession(store=self.store, holiday_source=source, today=date(2025, 3, 12)).load()
        self.assertEqual(s.official_holidays, [])
        s.show_month(2026, 1)
        s.show_month(2025, 3)
        self.assertEqual(source.calls, [2025, 2026, 2025])
        self.assertEqual([h.date for h in s.official_holidays], ["2025-04-09"])
        # now cached
        s.show_month(2026, 1)
        s.show_month(2025, 3)
        self.assertEqual(source.calls, [2025, 2026, 2025])

    def test_official_holidays_are_never_persisted(self) -> None:
        s = self._session()
        s.add_custom_holiday("Sportsfest", "2025-03-28")
        stored = json.loads(self.store.get_item(CUSTOM_HOLIDAYS_KEY))
        self.assertEqual([x["name"] for x in stored], ["Sportsfest"])

    def test_no_source_means_no_official_holidays(self) -> None:
        s = PlannerSession(store=self.store, holiday_source=None, today=date(2025, 3, 12)).load()
        self.assertEqual(s.official_holidays, [])

    def test_bad_stored_data_loads_as_empty(self) -> None:
        self.store.set_item(TASKS_KEY, "not json at all")
        self.store.set_item(CUSTOM_HOLIDAYS_KEY, json.dumps({"oops": True}))
        with self.assertLogs("student_planner", level="WARNING"):
            s = self._session()
        self.assertEqual(s.tasks, [])
        self.assertEqual(s.custom_holidays, [])

    def test_invalid_stored_records_are_skipped(self) -> None:
        self.store.set_item(TASKS_KEY, json.dumps([
            {"id": "ok", "title": "Essay", "date": "2025-03-10", "completed": False,
             "createdAt": "2025-03-01T10:00:00"},
            {"id": "bad", "title": "", "date": "2025-03-10"},
        ]))
        with self.assertLogs("student_planner.core.session", level="WARNING"):
            s = self._session()
        self.assertEqual([t.id for t in s.tasks], ["ok"])
        self.assertEqual(s.tasks[0].created_at, "2025-03-01T10:00:00")

    def test_month_grid_attaches_tasks_and_holidays(self) -> None:
        s = self._session(today=date(2025, 4, 1))
        s.add_task("Essay draft", "2025-04-09")
        s.add_custom_holiday("Retreat", "2025-05-02", "Religious")
        cells = s.month_grid(today=date(2025, 4, 1))
        self.assertEqual(len(cells), 42)
        by_key = {c.slot.key: c for c in cells}
        self.assertEqual([t.title for t in by_key["2025-04-09"].tasks], ["Essay draft"])
        self.assertEqual([h.name for h in by_key["2025-04-09"].holidays], ["Araw ng Kagitingan"])
        # trailing slot from May still shows its holiday
        self.assertFalse(by_key["2025-05-02"].slot.in_current_month)
        self.assertEqual([h.name for h in by_key["2025-05-02"].holidays], ["Retreat"])
        self.assertEqual([c.slot.key for c in cells if c.slot.is_today], ["2025-04-01"])

    def test_runs_without_a_store(self) -> None:
        s = PlannerSession(store=None, holiday_source=self.source, today=date(2025, 3, 12)).load()
        t = s.add_task("Essay draft", "2025-03-10")
        self.assertEqual(s.tasks, [t])


if __name__ == "__main__":
    unittest.main()
