"""Gantt rows for one top-level task and its subtree."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from .calendar_view import parse_deadline
from .tree import flatten_tree


@dataclass(frozen=True)
class GanttRow:
    id: int
    title: str
    assignee: str
    depth: int
    start: date
    end: date
    offset_pct: float
    width_pct: float


def _created_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            return None
    return None


def gantt_rows(root: dict[str, Any], *, today: date | None = None) -> tuple[list[GanttRow], date, date]:
    """
    Lay out ``root`` and its descendants on a shared day axis.

    Each task spans its creation date to its deadline; a missing deadline, or
    one before creation, collapses to the creation date. Bars are at least
    one day wide. Returns the rows and the axis range.
    """
    today = today or date.today()
    spans = []
    for node, depth in flatten_tree([root]):
        start = _created_date(node.get("created_at")) or today
        end = parse_deadline(node.get("deadline")) or start
        spans.append((node, depth, start, max(end, start)))

    range_start = min(s[2] for s in spans)
    range_end = max(s[3] for s in spans)
    if range_end == range_start:
        range_end = range_start + timedelta(days=1)
    range_days = max(1, (range_end - range_start).days)

    rows = []
    for node, depth, start, end in spans:
        offset = (start - range_start).days
        duration = max(1, (end - start).days)
        offset = min(offset, range_days - duration)
        rows.append(
            GanttRow(
                id=node["id"],
                title=node.get("title") or "",
                assignee=node.get("assignee") or "",
                depth=depth,
                start=start,
                end=end,
                offset_pct=offset / range_days * 100,
                width_pct=duration / range_days * 100,
            )
        )
    return rows, range_start, range_end
