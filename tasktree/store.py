"""Persistence for tasks and wiki pages.

``Store`` wraps the Flask-SQLAlchemy extension. The application factory
creates one and hands it to the blueprints; all methods must run inside an
application context.

The schema is simple and migration-safe:
- create tables if missing
- inspect ``tasks`` columns and add missing nullable ones with ALTER TABLE
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Mapping
from datetime import date
from typing import Any

import sqlalchemy as sa
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from .errors import NotFoundError, ValidationError
from .models import Task, WikiPage, utcnow
from .tree import build_tree, collect_subtree

logger = logging.getLogger(__name__)

# Columns added after the first release; older databases get them on startup.
TASK_COLUMN_ADDITIONS = (
    ("assignee", "TEXT NULL"),
    ("deadline", "TEXT NULL"),
    ("description", "TEXT NULL"),
)

TASK_UPDATE_FIELDS = frozenset({"title", "assignee", "deadline", "description", "done"})
WIKI_UPDATE_FIELDS = frozenset({"title", "content"})


def clean_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("title_required")
    return value.strip()


def clean_optional_text(value: Any) -> str | None:
    """Trimmed string, or None for anything blank or not a string."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def clean_deadline(value: Any) -> str | None:
    text = clean_optional_text(value)
    if text is None:
        return None
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        raise ValidationError("deadline_invalid") from None


def clean_parent_id(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError("parent_invalid")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError("parent_invalid")


class Store:
    def __init__(self, db: SQLAlchemy) -> None:
        self._db = db

    @property
    def session(self):
        return self._db.session

    # ---- schema ----

    def ensure_schema(self) -> None:
        self._db.create_all()
        engine = self._db.engine

        if engine.dialect.name == "sqlite":
            with contextlib.suppress(SQLAlchemyError), engine.connect() as conn:
                conn.exec_driver_sql("PRAGMA journal_mode=WAL")

        cols = {c["name"] for c in sa.inspect(engine).get_columns("tasks")}
        with engine.begin() as conn:
            for name, decl in TASK_COLUMN_ADDITIONS:
                if name in cols:
                    continue
                conn.exec_driver_sql(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("Store migration: added column tasks.%s", name)
            conn.exec_driver_sql("CREATE INDEX IF NOT EXISTS idx_tasks_parent ON tasks(parent_id)")
            conn.exec_driver_sql(
                "CREATE INDEX IF NOT EXISTS idx_wiki_pages_updated ON wiki_pages(updated_at)"
            )

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Store commit failed; rolled back.")
            raise

    # ---- tasks ----

    def count_tasks(self) -> int:
        return int(self.session.execute(sa.select(sa.func.count(Task.id))).scalar_one())

    def task_rows(self) -> list[dict[str, Any]]:
        tasks = self.session.execute(sa.select(Task).order_by(Task.id)).scalars()
        return [t.to_dict() for t in tasks]

    def task_tree(self) -> list[dict[str, Any]]:
        return build_tree(self.task_rows())

    def get_task(self, task_id: int) -> Task | None:
        return self.session.get(Task, task_id)

    def create_task(
        self,
        *,
        title: Any,
        parent_id: Any = None,
        assignee: Any = None,
        deadline: Any = None,
        description: Any = None,
    ) -> int:
        pid = clean_parent_id(parent_id)
        if pid is not None and self.session.get(Task, pid) is None:
            raise ValidationError("parent_invalid")
        now = utcnow()
        t = Task(
            parent_id=pid,
            title=clean_title(title),
            assignee=clean_optional_text(assignee),
            deadline=clean_deadline(deadline),
            description=clean_optional_text(description),
            done=False,
            created_at=now,
            updated_at=now,
        )
        self.session.add(t)
        self._commit()
        logger.info("Task created id=%s parent=%s", t.id, t.parent_id)
        return t.id

    def update_task(self, task_id: int, changes: Mapping[str, Any]) -> None:
        """
        Apply a field update set.

        ``changes`` maps field name to new value; fields not present are left
        untouched. A value of None clears an optional field.
        """
        unknown = set(changes) - TASK_UPDATE_FIELDS
        if unknown:
            raise ValueError(f"unknown task fields: {sorted(unknown)}")

        t = self.get_task(task_id)
        if t is None:
            raise NotFoundError()

        # validate everything before touching the row
        values: dict[str, Any] = {}
        if "title" in changes:
            values["title"] = clean_title(changes["title"])
        if "assignee" in changes:
            values["assignee"] = clean_optional_text(changes["assignee"])
        if "deadline" in changes:
            values["deadline"] = clean_deadline(changes["deadline"])
        if "description" in changes:
            values["description"] = clean_optional_text(changes["description"])
        if "done" in changes:
            if not isinstance(changes["done"], bool):
                raise ValidationError("done_invalid")
            values["done"] = changes["done"]

        for name, value in values.items():
            setattr(t, name, value)
        t.updated_at = utcnow()
        self._commit()

    def delete_task_subtree(self, task_id: int) -> int:
        """
        Delete a task and every descendant in one transaction.

        Returns the number of rows deleted; 0 when the task does not exist.
        """
        pairs = self.session.execute(sa.select(Task.id, Task.parent_id)).all()
        ids = collect_subtree(((r.id, r.parent_id) for r in pairs), task_id)
        try:
            result = self.session.execute(
                sa.delete(Task).where(Task.id.in_(ids)).execution_options(synchronize_session=False)
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Subtree delete failed for task %s; rolled back.", task_id)
            raise
        deleted = int(result.rowcount or 0)
        logger.info("Task subtree deleted root=%s deleted=%s", task_id, deleted)
        return deleted

    # ---- wiki ----

    def list_pages(self) -> list[dict[str, Any]]:
        pages = self.session.execute(
            sa.select(WikiPage).order_by(WikiPage.updated_at.desc(), WikiPage.id.desc())
        ).scalars()
        return [p.to_dict(with_content=False) for p in pages]

    def get_page(self, page_id: int) -> dict[str, Any]:
        p = self.session.get(WikiPage, page_id)
        if p is None:
            raise NotFoundError()
        return p.to_dict()

    def create_page(self, *, title: Any, content: Any = "") -> int:
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise ValidationError("content_required")
        now = utcnow()
        p = WikiPage(title=clean_title(title), content=content, created_at=now, updated_at=now)
        self.session.add(p)
        self._commit()
        logger.info("Wiki page created id=%s", p.id)
        return p.id

    def update_page(self, page_id: int, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - WIKI_UPDATE_FIELDS
        if unknown:
            raise ValueError(f"unknown wiki fields: {sorted(unknown)}")

        p = self.session.get(WikiPage, page_id)
        if p is None:
            raise NotFoundError()
        # null means "leave as is" for these required fields
        title = p.title if changes.get("title") is None else clean_title(changes["title"])
        content = p.content if changes.get("content") is None else changes["content"]
        if not isinstance(content, str):
            raise ValidationError("content_required")
        p.title = title
        p.content = content
        p.updated_at = utcnow()
        self._commit()

    def delete_page(self, page_id: int) -> None:
        p = self.session.get(WikiPage, page_id)
        if p is None:
            raise NotFoundError()
        self.session.delete(p)
        self._commit()
        logger.info("Wiki page deleted id=%s", page_id)
