"""Calendar aggregation over the task tree.

Pure derived view: tasks are grouped by their ``deadline`` date and laid out
as month, week or day views. Weeks start on Monday.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from .tree import flatten_tree

VIEWS = ("month", "week", "day")
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# events shown per cell before collapsing into "+N more"
CELL_EVENT_LIMIT = {"month": 3, "week": 2}


def parse_deadline(value: Any) -> date | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def events_by_date(forest: Iterable[dict[str, Any]]) -> dict[date, list[dict[str, Any]]]:
    """Every task with a deadline, keyed by that date; each day sorted by title."""
    out: dict[date, list[dict[str, Any]]] = {}
    for node, _level in flatten_tree(forest):
        day = parse_deadline(node.get("deadline"))
        if day is None:
            continue
        out.setdefault(day, []).append(node)
    for items in out.values():
        items.sort(key=lambda n: (n.get("title") or "").casefold())
    return out


def month_start(d: date) -> date:
    return d.replace(day=1)


def add_months(d: date, offset: int) -> date:
    """First day of the month ``offset`` months away from ``d``."""
    index = d.year * 12 + (d.month - 1) + offset
    return date(index // 12, index % 12 + 1, 1)


def start_of_week(d: date) -> date:
    return d - timedelta(days=d.weekday())


def week_dates(d: date) -> list[date]:
    start = start_of_week(d)
    return [start + timedelta(days=i) for i in range(7)]


def month_grid(d: date) -> list[date | None]:
    """Days of the month of ``d``, padded with None to whole Monday-first weeks."""
    first = month_start(d)
    days: list[date | None] = [None] * first.weekday()
    cur = first
    while cur.month == first.month:
        days.append(cur)
        cur += timedelta(days=1)
    while len(days) % 7:
        days.append(None)
    return days


def navigate(view: str, selected: date, offset: int) -> date:
    """New selected date after stepping ``offset`` periods in ``view``."""
    if view == "month":
        return add_months(selected, offset)
    step = 7 if view == "week" else 1
    return selected + timedelta(days=offset * step)


@dataclass
class CalendarCell:
    day: date | None
    events: list[dict[str, Any]] = field(default_factory=list)
    more: int = 0
    is_today: bool = False
    is_selected: bool = False


@dataclass
class CalendarPage:
    view: str
    selected: date
    today: date
    cells: list[CalendarCell]
    selected_events: list[dict[str, Any]]
    prev_date: date
    next_date: date

    @property
    def label(self) -> str:
        if self.view == "month":
            return self.selected.strftime("%B %Y")
        if self.view == "week":
            days = week_dates(self.selected)
            return f"{days[0]:%d %b} - {days[-1]:%d %b %Y}"
        return self.selected.strftime("%A, %d %B %Y")


def build_calendar(
    forest: Iterable[dict[str, Any]],
    *,
    view: str = "month",
    selected: date | None = None,
    today: date | None = None,
) -> CalendarPage:
    today = today or date.today()
    selected = selected or today
    if view not in VIEWS:
        view = "month"

    events = events_by_date(forest)

    if view == "month":
        days: list[date | None] = month_grid(selected)
    elif view == "week":
        days = list(week_dates(selected))
    else:
        days = []

    limit = CELL_EVENT_LIMIT.get(view, 0)
    cells = []
    for day in days:
        if day is None:
            cells.append(CalendarCell(day=None))
            continue
        day_events = events.get(day, [])
        cells.append(
            CalendarCell(
                day=day,
                events=day_events[:limit],
                more=max(0, len(day_events) - limit),
                is_today=day == today,
                is_selected=day == selected,
            )
        )

    return CalendarPage(
        view=view,
        selected=selected,
        today=today,
        cells=cells,
        selected_events=events.get(selected, []),
        prev_date=navigate(view, selected, -1),
        next_date=navigate(view, selected, 1),
    )
