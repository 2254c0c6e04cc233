"""JSON API: auth, tasks and wiki pages.

Routes are built by ``create_api`` around an explicit ``Store`` and
``AuthGate``; nothing here reaches for module-level state.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, jsonify, request

from .auth import AuthGate
from .errors import ValidationError
from .markdown import render_markdown
from .store import Store

logger = logging.getLogger(__name__)

TASK_PATCH_FIELDS = ("title", "assignee", "deadline", "description", "done")
WIKI_PATCH_FIELDS = ("title", "content")


def _json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def task_changes(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Turn a PATCH body into an explicit field update set.

    Only keys the client sent end up in the result; a null value clears an
    optional field. Values are validated by the store.
    """
    return {name: payload[name] for name in TASK_PATCH_FIELDS if name in payload}


def wiki_changes(payload: dict[str, Any]) -> dict[str, Any]:
    return {name: payload[name] for name in WIKI_PATCH_FIELDS if name in payload}


def create_api(store: Store, gate: AuthGate) -> Blueprint:
    api = Blueprint("api", __name__, url_prefix="/api")

    # -------------------- Auth --------------------
    @api.route("/login", methods=["POST"])
    def login():
        password = _json_body().get("password")
        if not isinstance(password, str):
            return jsonify({"error": "bad_request"}), 400
        if not gate.check_password(password):
            logger.warning("Login failed from %s", request.remote_addr)
            return jsonify({"error": "invalid_password"}), 401
        logger.info("Login ok from %s", request.remote_addr)
        return gate.set_cookie(jsonify({"ok": True}))

    @api.route("/logout", methods=["POST"])
    def logout():
        return gate.clear_cookie(jsonify({"ok": True}))

    @api.route("/me")
    def me():
        return jsonify({"authenticated": gate.is_authenticated()})

    # -------------------- Tasks --------------------
    @api.route("/tasks")
    @gate.required
    def list_tasks():
        return jsonify({"tree": store.task_tree()})

    @api.route("/tasks", methods=["POST"])
    @gate.required
    def create_task():
        data = _json_body()
        task_id = store.create_task(
            title=data.get("title"),
            parent_id=data.get("parent_id"),
            assignee=data.get("assignee"),
            deadline=data.get("deadline"),
            description=data.get("description"),
        )
        return jsonify({"ok": True, "id": task_id})

    @api.route("/tasks/<int:task_id>", methods=["PATCH"])
    @gate.required
    def update_task(task_id: int):
        store.update_task(task_id, task_changes(_json_body()))
        return jsonify({"ok": True})

    @api.route("/tasks/<int:task_id>", methods=["DELETE"])
    @gate.required
    def delete_task(task_id: int):
        deleted = store.delete_task_subtree(task_id)
        return jsonify({"ok": True, "deleted": deleted})

    # -------------------- Wiki --------------------
    @api.route("/wiki")
    @gate.required
    def list_pages():
        return jsonify({"pages": store.list_pages()})

    @api.route("/wiki/<int:page_id>")
    @gate.required
    def get_page(page_id: int):
        return jsonify({"page": store.get_page(page_id)})

    @api.route("/wiki", methods=["POST"])
    @gate.required
    def create_page():
        data = _json_body()
        page_id = store.create_page(title=data.get("title"), content=data.get("content", ""))
        return jsonify({"ok": True, "id": page_id})

    @api.route("/wiki/<int:page_id>", methods=["PATCH"])
    @gate.required
    def update_page(page_id: int):
        store.update_page(page_id, wiki_changes(_json_body()))
        return jsonify({"ok": True})

    @api.route("/wiki/<int:page_id>", methods=["DELETE"])
    @gate.required
    def delete_page(page_id: int):
        store.delete_page(page_id)
        return jsonify({"ok": True})

    @api.route("/wiki/preview", methods=["POST"])
    @gate.required
    def preview_page():
        content = _json_body().get("content", "")
        if not isinstance(content, str):
            raise ValidationError("content_required")
        return jsonify({"html": render_markdown(content)})

    return api
