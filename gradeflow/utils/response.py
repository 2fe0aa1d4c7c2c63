"""
JSON envelope shared by every route and exception handler.

Bodies always carry ``success``, ``message`` and ``data``. On failure
``data`` holds what the client needs to recover (the violations, a redirect,
the rejected files) or ``None``.
"""

from typing import Any

from gradeflow.core.errors import GradeflowError


def _envelope(ok: bool, message: str, data: Any) -> dict:
    return {"success": ok, "message": message, "data": data}


def success_response(data: Any = None, message: str = "OK") -> dict:
    return _envelope(True, message, data)


def error_response(error: GradeflowError, **details: Any) -> dict:
    """Envelope for an expected failure; ``details`` become ``data`` when given."""
    return _envelope(False, error.message, details or None)
