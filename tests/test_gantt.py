from __future__ import annotations

from datetime import date

import pytest

from tasktree.gantt import gantt_rows
from tasktree.tree import build_tree


def _root():
    rows = [
        {"id": 1, "parent_id": None, "title": "Launch", "assignee": "Ann", "done": False,
         "created_at": "2024-03-01T09:00:00.000000", "deadline": "2024-03-11"},
        {"id": 2, "parent_id": 1, "title": "Design", "assignee": None, "done": False,
         "created_at": "2024-03-01T10:00:00.000000", "deadline": "2024-03-06"},
        {"id": 3, "parent_id": 2, "title": "Sketch", "assignee": None, "done": False,
         "created_at": "2024-03-06T10:00:00.000000", "deadline": None},
    ]
    return build_tree(rows)[0]


def test_rows_follow_the_subtree() -> None:
    rows, start, end = gantt_rows(_root())
    assert [(r.id, r.depth) for r in rows] == [(1, 0), (2, 1), (3, 2)]
    assert start == date(2024, 3, 1)
    assert end == date(2024, 3, 11)


def test_bar_geometry() -> None:
    rows, _, _ = gantt_rows(_root())
    launch, design, sketch = rows

    assert launch.offset_pct == 0
    assert launch.width_pct == 100
    assert design.width_pct == pytest.approx(50)
    # no deadline: one day wide starting at creation
    assert sketch.start == sketch.end == date(2024, 3, 6)
    assert sketch.offset_pct == pytest.approx(50)
    assert sketch.width_pct == pytest.approx(10)


def test_single_task_gets_a_one_day_axis() -> None:
    node = {"id": 9, "title": "solo", "created_at": "2024-03-01T00:00:00.000000", "deadline": "2024-02-01", "children": []}
    rows, start, end = gantt_rows(node)
    assert (start, end) == (date(2024, 3, 1), date(2024, 3, 2))
    assert rows[0].end == date(2024, 3, 1)
    assert rows[0].width_pct == 100
