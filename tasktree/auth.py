"""Single shared-password authentication.

A correct password is exchanged for a signed, time-limited token kept in an
HTTP-only cookie. The token carries no identity beyond a constant marker.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Request, Response, redirect, request, url_for
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash

from .errors import UnauthorizedError

logger = logging.getLogger(__name__)

COOKIE_NAME = "auth"
TOKEN_MARKER = {"u": "single"}


class AuthGate:
    def __init__(
        self,
        *,
        secret_key: str,
        password_hash: str,
        max_age: int,
        cookie_name: str = COOKIE_NAME,
        cookie_secure: bool = False,
    ) -> None:
        self._serializer = URLSafeTimedSerializer(secret_key, salt="tasktree-auth")
        self._password_hash = password_hash
        self.max_age = max_age
        self.cookie_name = cookie_name
        self.cookie_secure = cookie_secure

    # ---- password + token ----

    def check_password(self, password: str) -> bool:
        if not self._password_hash:
            return False
        try:
            return check_password_hash(self._password_hash, password)
        except ValueError:
            logger.error("PASSWORD_HASH is not a valid werkzeug password hash.")
            return False

    def issue_token(self) -> str:
        return self._serializer.dumps(TOKEN_MARKER)

    def verify_token(self, token: str | None) -> bool:
        if not token:
            return False
        try:
            payload = self._serializer.loads(token, max_age=self.max_age)
        except SignatureExpired:
            logger.info("Auth token expired.")
            return False
        except BadSignature:
            logger.warning("Auth token with bad signature rejected.")
            return False
        return payload == TOKEN_MARKER

    def is_authenticated(self, req: Request | None = None) -> bool:
        req = req if req is not None else request
        return self.verify_token(req.cookies.get(self.cookie_name))

    # ---- cookie ----

    def set_cookie(self, response: Response) -> Response:
        response.set_cookie(
            self.cookie_name,
            self.issue_token(),
            max_age=self.max_age,
            httponly=True,
            samesite="Lax",
            secure=self.cookie_secure,
        )
        return response

    def clear_cookie(self, response: Response) -> Response:
        response.delete_cookie(self.cookie_name, httponly=True, samesite="Lax")
        return response

    # ---- route guards ----

    def required(self, view: Callable[..., Any]) -> Callable[..., Any]:
        """Guard a JSON route: 401 {"error": "unauthorized"} without a valid token."""

        @functools.wraps(view)
        def wrapped(*args: Any, **kwargs: Any) -> Any:
            if not self.is_authenticated():
                raise UnauthorizedError()
            return view(*args, **kwargs)

        return wrapped

    def page_required(self, view: Callable[..., Any]) -> Callable[..., Any]:
        """Guard an HTML page: redirect to the login page without a valid token."""

        @functools.wraps(view)
        def wrapped(*args: Any, **kwargs: Any) -> Any:
            if not self.is_authenticated():
                return redirect(url_for("pages.login", next=request.full_path.rstrip("?")))
            return view(*args, **kwargs)

        return wrapped
