"""SQLAlchemy models for tasks and wiki pages."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite DateTime columns do not keep tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value: datetime | None) -> str | None:
    # fixed width so serialized timestamps also sort as strings
    return value.isoformat(timespec="microseconds") if value else None


class Task(db.Model):
    __tablename__ = "tasks"
    # AUTOINCREMENT: ids of deleted tasks are never handed out again
    __table_args__ = (
        db.Index("idx_tasks_parent", "parent_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    title = db.Column(db.Text, nullable=False)
    assignee = db.Column(db.Text, nullable=True)
    deadline = db.Column(db.Text, nullable=True)  # YYYY-MM-DD
    description = db.Column(db.Text, nullable=True)
    done = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "parent_id": self.parent_id,
            "title": self.title,
            "assignee": self.assignee,
            "deadline": self.deadline,
            "description": self.description,
            "done": bool(self.done),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class WikiPage(db.Model):
    __tablename__ = "wiki_pages"
    __table_args__ = (
        db.Index("idx_wiki_pages_updated", "updated_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self, with_content: bool = True) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if with_content:
            d["content"] = self.content or ""
        return d
