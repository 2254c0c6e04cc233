from __future__ import annotations

from datetime import date

from tasktree.calendar_view import (
    add_months,
    build_calendar,
    events_by_date,
    month_grid,
    navigate,
    parse_deadline,
    start_of_week,
    week_dates,
)
from tasktree.tree import build_tree


def _forest():
    rows = [
        {"id": 1, "parent_id": None, "title": "beta", "deadline": "2024-05-15", "done": False, "created_at": "a"},
        {"id": 2, "parent_id": 1, "title": "Alpha", "deadline": "2024-05-15", "done": True, "created_at": "b"},
        {"id": 3, "parent_id": 2, "title": "gamma", "deadline": "2024-05-16", "done": False, "created_at": "c"},
        {"id": 4, "parent_id": None, "title": "no date", "deadline": None, "done": False, "created_at": "d"},
        {"id": 5, "parent_id": None, "title": "broken", "deadline": "soon", "done": False, "created_at": "e"},
    ]
    return build_tree(rows)


def test_events_grouped_by_deadline_and_sorted_by_title() -> None:
    events = events_by_date(_forest())
    assert set(events) == {date(2024, 5, 15), date(2024, 5, 16)}
    assert [t["title"] for t in events[date(2024, 5, 15)]] == ["Alpha", "beta"]
    assert [t["id"] for t in events[date(2024, 5, 16)]] == [3]


def test_parse_deadline() -> None:
    assert parse_deadline("2024-02-29") == date(2024, 2, 29)
    assert parse_deadline(" 2024-02-29 ") == date(2024, 2, 29)
    assert parse_deadline("2023-02-29") is None
    assert parse_deadline("") is None
    assert parse_deadline(None) is None


def test_month_grid_starts_on_monday() -> None:
    grid = month_grid(date(2024, 5, 20))  # May 2024 starts on a Wednesday
    assert len(grid) % 7 == 0
    assert grid[:3] == [None, None, date(2024, 5, 1)]
    assert [d for d in grid if d][-1] == date(2024, 5, 31)
    assert len([d for d in grid if d]) == 31


def test_week_dates_and_start_of_week() -> None:
    assert start_of_week(date(2024, 5, 19)) == date(2024, 5, 13)  # Sunday -> Monday before
    days = week_dates(date(2024, 5, 15))
    assert days[0] == date(2024, 5, 13)
    assert days[-1] == date(2024, 5, 19)


def test_navigation_steps() -> None:
    assert add_months(date(2024, 12, 31), 1) == date(2025, 1, 1)
    assert add_months(date(2024, 1, 31), -1) == date(2023, 12, 1)
    assert navigate("month", date(2024, 1, 31), 1) == date(2024, 2, 1)
    assert navigate("week", date(2024, 1, 31), -1) == date(2024, 1, 24)
    assert navigate("day", date(2024, 2, 28), 2) == date(2024, 3, 1)


def test_month_cells_cap_events() -> None:
    rows = [
        {"id": i, "parent_id": None, "title": f"t{i}", "deadline": "2024-05-10", "done": False, "created_at": str(i)}
        for i in range(5)
    ]
    cal = build_calendar(build_tree(rows), view="month", selected=date(2024, 5, 10), today=date(2024, 5, 1))

    cell = next(c for c in cal.cells if c.day == date(2024, 5, 10))
    assert len(cell.events) == 3
    assert cell.more == 2
    assert cell.is_selected
    assert next(c for c in cal.cells if c.day == date(2024, 5, 1)).is_today
    assert len(cal.selected_events) == 5
    assert cal.prev_date == date(2024, 4, 1)
    assert cal.next_date == date(2024, 6, 1)


def test_week_and_day_views() -> None:
    forest = _forest()
    week = build_calendar(forest, view="week", selected=date(2024, 5, 15))
    assert [c.day for c in week.cells] == week_dates(date(2024, 5, 15))
    assert len(week.cells[2].events) == 2
    assert week.cells[2].more == 0

    day = build_calendar(forest, view="day", selected=date(2024, 5, 16))
    assert day.cells == []
    assert [t["title"] for t in day.selected_events] == ["gamma"]

    fallback = build_calendar(forest, view="year", selected=date(2024, 5, 16))
    assert fallback.view == "month"
