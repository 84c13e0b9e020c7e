# Command-line planner: month grid, tasks, holidays, dashboard

import argparse
import logging
import sys

from pydantic import ValidationError

from student_planner.core.session import PlannerSession
from student_planner.models.schemas import HOLIDAY_TYPES
from student_planner.planner_calendar.grid import (
    format_date_display,
    format_date_key,
    format_date_short,
    grid_weeks,
    month_title,
    now_local,
    parse_date_key,
)
from student_planner.planning import derive
from student_planner.services.holiday_source import HolidaySource, PlannerApiClient
from student_planner.utils.config import CONFIG
from student_planner.utils.persistance import open_store

WEEKDAY_HEADER = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _open_session(args) -> PlannerSession:
    # only the calendar views need official holidays
    if getattr(args, "offline", False) or not getattr(args, "needs_holidays", False):
        source = None
    elif CONFIG["holidays"]["api_url"]:
        source = PlannerApiClient()
    else:
        source = HolidaySource()
    session = PlannerSession(store=open_store(args.store), holiday_source=source)
    year = getattr(args, "year", None)
    month = getattr(args, "month", None)
    if year or month:
        today = now_local().date()
        session.visible_month = session.visible_month.replace(year=year or today.year, month=month or today.month)
    return session.load()


def _print_task(t):
    mark = "x" if t.completed else " "
    line = f"[{mark}] {t.date} | {t.title}"
    if t.deadline:
        line += f" (due {t.deadline})"
    print(f"{line}  id={t.id}")
    if t.description:
        print(f"      {t.description}")


def _print_holiday(h):
    kind = "official" if h.is_official else "custom"
    print(f"{h.date} | {h.name} [{h.type}, {kind}]  id={h.id}")


def cmd_add_task(args):
    s = _open_session(args)
    t = s.add_task(args.title, args.date, deadline=args.deadline, description=args.description)
    print(f"Added: {t.title} on {t.date} (id={t.id})")


def cmd_tasks(args):
    s = _open_session(args)
    rows = derive.task_list_view(s.tasks, period=args.period, search=args.search,
                                 show_completed=not args.hide_completed)
    for t in rows:
        _print_task(t)
    c = derive.task_counts(s.tasks)
    print(f"\n{c['total']} total, {c['completed']} completed, {c['pending']} pending, {c['today']} today")


def cmd_today(args):
    s = _open_session(args)
    for t in derive.todays_tasks(s.tasks):
        _print_task(t)


def cmd_done(args):
    s = _open_session(args)
    t = s.toggle_task(args.task_id)
    if not t:
        print(f"No task with id {args.task_id}")
        return 1
    print(f"{t.title}: {'completed' if t.completed else 'not completed'}")


def cmd_delete_task(args):
    s = _open_session(args)
    if not s.delete_task(args.task_id):
        print(f"No task with id {args.task_id}")
        return 1
    print("Deleted.")


def _given(args, *names) -> dict:
    return {n: getattr(args, n) for n in names if getattr(args, n) is not None}


def cmd_edit_task(args):
    s = _open_session(args)
    fields = _given(args, "title", "date", "deadline", "description")
    if not fields:
        print("Nothing to change.")
        return 1
    t = s.update_task(args.task_id, **fields)
    if not t:
        print(f"No task with id {args.task_id}")
        return 1
    print(f"Updated: {t.title} on {t.date} (id={t.id})")


def cmd_add_holiday(args):
    s = _open_session(args)
    h = s.add_custom_holiday(args.name, args.date, args.type, args.description)
    print(f"Added holiday: {h.name} on {h.date} [{h.type}] (id={h.id})")


def cmd_edit_holiday(args):
    s = _open_session(args)
    fields = _given(args, "name", "date", "type", "description")
    if not fields:
        print("Nothing to change.")
        return 1
    h = s.update_custom_holiday(args.holiday_id, **fields)
    if not h:
        print(f"No custom holiday with id {args.holiday_id} (official holidays can't be edited)")
        return 1
    print(f"Updated holiday: {h.name} on {h.date} [{h.type}] (id={h.id})")


def cmd_delete_holiday(args):
    s = _open_session(args)
    if not s.delete_custom_holiday(args.holiday_id):
        print(f"No custom holiday with id {args.holiday_id} (official holidays can't be deleted)")
        return 1
    print("Deleted.")


def cmd_holidays(args):
    s = _open_session(args)
    rows = derive.holiday_list_view(s.all_holidays, search=args.search, kind=args.kind)
    if args.upcoming:
        rows = derive.upcoming_holidays(rows, args.days, CONFIG["windows"]["upcoming_limit"])
    for h in rows:
        _print_holiday(h)


def cmd_month(args):
    s = _open_session(args)
    cells = s.month_grid()
    print(month_title(s.visible_month).center(7 * 6))
    print(" ".join(f"{d:>5}" for d in WEEKDAY_HEADER))
    for week in grid_weeks(cells):
        row = []
        for c in week:
            day = str(c.slot.date.day) if c.slot.in_current_month else "."
            flags = ("*" if c.slot.is_today else "") + ("h" if c.holidays else "") + ("t" if c.tasks else "")
            row.append(f"{day + flags:>5}")
        print(" ".join(row))
    print("\n* today   h holiday   t tasks")


def cmd_day(args):
    s = _open_session(args)
    d = parse_date_key(args.date)
    s.show_month(d.year, d.month)
    cell = s.day_details(format_date_key(d))
    print(format_date_display(cell.slot.date))
    for h in cell.holidays:
        _print_holiday(h)
    for t in cell.tasks:
        _print_task(t)
    if not cell.holidays and not cell.tasks:
        print("Nothing scheduled.")


def cmd_dashboard(args):
    s = _open_session(args)
    stats = s.dashboard()
    win = CONFIG["windows"]
    print(f"Tasks: {stats.total_tasks} total, {stats.completed_tasks} completed, {stats.todays_tasks} today")
    print(f"Holidays: {stats.official_holidays} official, {stats.custom_holidays} custom")

    overdue = derive.overdue_tasks(s.tasks)
    soon = derive.tasks_due_soon(s.tasks, win["due_soon_hours"])
    if overdue:
        print(f"\n! You have {len(overdue)} overdue task(s) that need immediate attention.")
    elif soon:
        print(f"\n! You have {len(soon)} task(s) due within {win['due_soon_hours']} hours.")

    print("\nUpcoming holidays:")
    upcoming = derive.upcoming_holidays(s.all_holidays, win["upcoming_days"], win["upcoming_limit"])
    for h in upcoming:
        print(f"- {format_date_short(parse_date_key(h.date))}: {h.name}")
    if not upcoming:
        print("- No holidays coming up in the next two weeks.")

    print("\nComing up this week:")
    for t in derive.upcoming_tasks(s.tasks, win["upcoming_task_days"]):
        print(f"- {format_date_short(parse_date_key(t.date))}: {t.title}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Student Planner CLI")
    p.add_argument("--store", choices=["file", "sql", "memory", "none"],
                   help="Storage backend (defaults to PLANNER_STORE)")
    p.add_argument("--offline", action="store_true", help="Skip fetching official holidays")
    sub = p.add_subparsers(required=True)

    sp = sub.add_parser("add-task", help="Add a task")
    sp.add_argument("title")
    sp.add_argument("date", help="YYYY-MM-DD")
    sp.add_argument("--deadline", help="YYYY-MM-DD (optional)")
    sp.add_argument("--description")
    sp.set_defaults(func=cmd_add_task)

    sp = sub.add_parser("tasks", help="List tasks")
    sp.add_argument("--period", default="all", choices=["all", "today", "week", "month"])
    sp.add_argument("--search", help="Match title/description (case-insensitive)")
    sp.add_argument("--hide-completed", action="store_true")
    sp.set_defaults(func=cmd_tasks)

    sp = sub.add_parser("today", help="List today's tasks")
    sp.set_defaults(func=cmd_today)

    sp = sub.add_parser("done", help="Toggle a task's completed flag")
    sp.add_argument("task_id")
    sp.set_defaults(func=cmd_done)

    sp = sub.add_parser("delete-task", help="Delete a task")
    sp.add_argument("task_id")
    sp.set_defaults(func=cmd_delete_task)

    sp = sub.add_parser("edit-task", help="Edit a task's title, date, deadline or description")
    sp.add_argument("task_id")
    sp.add_argument("--title")
    sp.add_argument("--date", help="YYYY-MM-DD")
    sp.add_argument("--deadline", help="YYYY-MM-DD; empty string clears it")
    sp.add_argument("--description")
    sp.set_defaults(func=cmd_edit_task)

    sp = sub.add_parser("add-holiday", help="Add a custom holiday")
    sp.add_argument("name")
    sp.add_argument("date", help="YYYY-MM-DD")
    sp.add_argument("--type", default="Festival", choices=list(HOLIDAY_TYPES))
    sp.add_argument("--description")
    sp.set_defaults(func=cmd_add_holiday)

    sp = sub.add_parser("delete-holiday", help="Delete a custom holiday")
    sp.add_argument("holiday_id")
    sp.set_defaults(func=cmd_delete_holiday)

    sp = sub.add_parser("edit-holiday", help="Edit a custom holiday")
    sp.add_argument("holiday_id")
    sp.add_argument("--name")
    sp.add_argument("--date", help="YYYY-MM-DD")
    sp.add_argument("--type", choices=list(HOLIDAY_TYPES))
    sp.add_argument("--description")
    sp.set_defaults(func=cmd_edit_holiday)

    sp = sub.add_parser("holidays", help="List official + custom holidays")
    sp.add_argument("--year", type=int)
    sp.add_argument("--upcoming", action="store_true", help="Only the next few holidays")
    sp.add_argument("--days", type=int, default=CONFIG["windows"]["upcoming_days"])
    sp.add_argument("--search", help="Match name/description/type (case-insensitive)")
    sp.add_argument("--kind", default="all", choices=list(derive.HOLIDAY_KINDS))
    sp.set_defaults(func=cmd_holidays, needs_holidays=True)

    sp = sub.add_parser("month", help="Show the month grid")
    sp.add_argument("--year", type=int)
    sp.add_argument("--month", type=int, choices=range(1, 13), metavar="1-12")
    sp.set_defaults(func=cmd_month, needs_holidays=True)

    sp = sub.add_parser("day", help="Show tasks + holidays on a date")
    sp.add_argument("date", help="YYYY-MM-DD")
    sp.set_defaults(func=cmd_day, needs_holidays=True)

    sp = sub.add_parser("dashboard", help="Summary of today, deadlines and holidays")
    sp.set_defaults(func=cmd_dashboard, needs_holidays=True)
    return p


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.DEBUG if CONFIG["debug_mode"] else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        return args.func(args) or 0
    except (ValidationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
