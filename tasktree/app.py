"""Application factory.

``create_app`` wires settings, logging, the database, the store and the
auth gate, then registers the JSON API and the pages.
"""

from __future__ import annotations

import logging
import time

from flask import Flask, g, jsonify, request
from markupsafe import Markup
from werkzeug.exceptions import HTTPException

from .api import create_api
from .auth import AuthGate
from .config import Settings, load_settings
from .errors import ApiError
from .logging_setup import setup_logging
from .markdown import render_markdown
from .models import db
from .store import Store
from .views import create_pages

logger = logging.getLogger(__name__)
http_logger = logging.getLogger("tasktree.http")


def create_app(settings: Settings | None = None, *, configure_logging: bool = True) -> Flask:
    settings = settings or load_settings()
    settings.validate()

    if configure_logging and not settings.testing:
        setup_logging(log_dir=settings.log_dir, console_level=settings.log_level)

    settings.db_path.parent.mkdir(parents=True, exist_ok=True)

    app = Flask(__name__)
    app.config.update(settings.flask_config())
    app.extensions["tasktree.settings"] = settings

    db.init_app(app)
    store = Store(db)
    gate = AuthGate(
        secret_key=settings.secret_key,
        password_hash=settings.password_hash,
        max_age=settings.token_max_age,
        cookie_secure=settings.cookie_secure,
    )

    with app.app_context():
        store.ensure_schema()
        logger.info("Store ready db=%s tasks=%s", settings.db_path, store.count_tasks())

    app.register_blueprint(create_api(store, gate))
    app.register_blueprint(create_pages(store, gate, operational_prefix=settings.operational_prefix))
    app.add_template_filter(_markdown_filter, "markdown")

    _register_error_handlers(app)
    _register_request_logging(app)
    return app


def _markdown_filter(text: str | None) -> Markup:
    # render_markdown escapes its input before adding tags
    return Markup(render_markdown(text or ""))


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        return jsonify(err.to_dict()), err.status

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        if request.path.startswith("/api/") and err.code and err.code >= 400:
            code = "not_found" if err.code == 404 else (err.name or "error").lower().replace(" ", "_")
            return jsonify({"error": code}), err.code
        return err


def _register_request_logging(app: Flask) -> None:
    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_request(response):
        started = g.pop("request_started", None)
        elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
        http_logger.info("%s %s %s %.1fms", request.method, request.path, response.status_code, elapsed_ms)
        return response

