"""Server-rendered pages: task tree, task cards, calendar, wiki, gantt.

The tree shown on a page is a fresh snapshot from the store on every request.
Only interaction state (expanded nodes, visible panels) is remembered, in a
side map kept in the session and keyed by task id.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from flask import Blueprint, abort, redirect, render_template, request, session, url_for

from .auth import AuthGate
from .calendar_view import WEEKDAY_NAMES, build_calendar
from .errors import NotFoundError
from .gantt import gantt_rows
from .store import Store
from .tree import find_root, flatten_tree

SESSION_KEY = "view_state"
TABS = ("tasks", "operational")


@dataclass(frozen=True)
class ViewState:
    open_by_id: Mapping[int, bool] = field(default_factory=dict)
    show_cards: bool = True
    show_meta: bool = False

    def is_open(self, task_id: int) -> bool:
        return self.open_by_id.get(task_id, True)

    def with_open(self, task_id: int, is_open: bool) -> ViewState:
        return replace(self, open_by_id={**self.open_by_id, task_id: is_open})

    def to_session(self) -> dict[str, Any]:
        return {
            "open": {str(k): v for k, v in self.open_by_id.items()},
            "cards": self.show_cards,
            "meta": self.show_meta,
        }

    @classmethod
    def from_session(cls, data: Any) -> ViewState:
        if not isinstance(data, dict):
            return cls()
        open_by_id = {}
        for k, v in (data.get("open") or {}).items():
            if str(k).isdigit() and isinstance(v, bool):
                open_by_id[int(k)] = v
        return cls(
            open_by_id=open_by_id,
            show_cards=bool(data.get("cards", True)),
            show_meta=bool(data.get("meta", False)),
        )


@dataclass(frozen=True)
class TreeRow:
    node: dict[str, Any]
    level: int
    is_open: bool
    has_children: bool


def render_rows(forest: Iterable[dict[str, Any]], state: ViewState, level: int = 0) -> list[TreeRow]:
    """Display rows for the tree; children of collapsed nodes are left out."""
    rows: list[TreeRow] = []
    for node in forest:
        children = node.get("children") or []
        is_open = state.is_open(node["id"])
        rows.append(TreeRow(node=node, level=level, is_open=is_open, has_children=bool(children)))
        if is_open and children:
            rows.extend(render_rows(children, state, level + 1))
    return rows


def is_operational(node: Mapping[str, Any], prefix: str) -> bool:
    words = (node.get("title") or "").split()
    return bool(words) and words[0] == prefix


def visible_roots(forest: list[dict[str, Any]], tab: str, prefix: str) -> list[dict[str, Any]]:
    if tab == "operational":
        return [n for n in forest if is_operational(n, prefix)]
    return [n for n in forest if not is_operational(n, prefix)]


def _load_state() -> ViewState:
    return ViewState.from_session(session.get(SESSION_KEY))


def _save_state(state: ViewState) -> None:
    session[SESSION_KEY] = state.to_session()


def _back(default: str):
    target = request.form.get("next") or request.referrer
    if target and target.startswith(request.host_url):
        return redirect(target)
    if target and target.startswith("/") and not target.startswith("//"):
        return redirect(target)
    return redirect(default)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def create_pages(store: Store, gate: AuthGate, *, operational_prefix: str) -> Blueprint:
    pages = Blueprint("pages", __name__)

    @pages.app_template_global()
    def weekday_names():
        return WEEKDAY_NAMES

    @pages.route("/login")
    def login():
        if gate.is_authenticated():
            return redirect(url_for("pages.tasks"))
        next_url = request.args.get("next", "")
        if not next_url.startswith("/") or next_url.startswith("//"):
            next_url = ""
        return render_template("login.html", next=next_url)

    @pages.route("/")
    def index():
        return redirect(url_for("pages.tasks"))

    @pages.route("/tasks")
    @gate.page_required
    def tasks():
        state = _load_state()
        tree = store.task_tree()
        selected = request.args.get("selected", type=int)

        tab = request.args.get("tab")
        if tab not in TABS:
            root = find_root(tree, selected) if selected is not None else None
            tab = "operational" if root and is_operational(root, operational_prefix) else "tasks"

        roots = visible_roots(tree, tab, operational_prefix)
        cards = flatten_tree(roots) if state.show_cards else []
        return render_template(
            "tasks.html",
            tab=tab,
            rows=render_rows(roots, state),
            cards=cards,
            selected=selected,
            state=state,
        )

    @pages.route("/tasks/<int:task_id>/gantt")
    @gate.page_required
    def gantt(task_id: int):
        node = next((n for n, _ in flatten_tree(store.task_tree()) if n["id"] == task_id), None)
        if node is None:
            abort(404)
        rows, range_start, range_end = gantt_rows(node)
        return render_template("gantt.html", node=node, rows=rows, range_start=range_start, range_end=range_end)

    @pages.route("/calendar")
    @gate.page_required
    def calendar():
        page = build_calendar(
            store.task_tree(),
            view=request.args.get("view", "month"),
            selected=_parse_date(request.args.get("date")),
        )
        return render_template("calendar.html", cal=page)

    @pages.route("/wiki")
    @pages.route("/wiki/<int:page_id>")
    @gate.page_required
    def wiki(page_id: int | None = None):
        listing = store.list_pages()
        page = None
        if page_id is None and listing:
            page_id = listing[0]["id"]
        if page_id is not None:
            try:
                page = store.get_page(page_id)
            except NotFoundError:
                abort(404)
        return render_template("wiki.html", pages=listing, page=page)

    # -------------------- UI state --------------------
    @pages.route("/ui/open/<int:task_id>", methods=["POST"])
    @gate.page_required
    def toggle_open(task_id: int):
        state = _load_state()
        _save_state(state.with_open(task_id, not state.is_open(task_id)))
        return _back(url_for("pages.tasks"))

    @pages.route("/ui/cards", methods=["POST"])
    @gate.page_required
    def toggle_cards():
        state = _load_state()
        _save_state(replace(state, show_cards=not state.show_cards))
        return _back(url_for("pages.tasks"))

    @pages.route("/ui/meta", methods=["POST"])
    @gate.page_required
    def toggle_meta():
        state = _load_state()
        _save_state(replace(state, show_meta=not state.show_meta))
        return _back(url_for("pages.tasks"))

    return pages
