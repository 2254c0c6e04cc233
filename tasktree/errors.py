"""Errors that map onto JSON error responses: ``{"error": code}`` + status."""

from __future__ import annotations


class ApiError(Exception):
    status = 500

    def __init__(self, code: str, status: int | None = None) -> None:
        super().__init__(code)
        self.code = code
        if status is not None:
            self.status = status

    def to_dict(self) -> dict[str, str]:
        return {"error": self.code}


class ValidationError(ApiError, ValueError):
    """A required field is missing, blank or of the wrong type."""

    status = 400


class NotFoundError(ApiError, LookupError):
    status = 404

    def __init__(self, code: str = "not_found") -> None:
        super().__init__(code)


class UnauthorizedError(ApiError):
    status = 401

    def __init__(self, code: str = "unauthorized") -> None:
        super().__init__(code)
