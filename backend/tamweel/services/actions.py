# Overview: Boundary for exported back-office actions; converts failures into sentinels or typed results.

"""
Action Boundary

Every exported action follows the same contract:
- plain call: returns the payload, or a sentinel (None / False / [] / {})
  on any failure; nothing is raised to the caller
- action.result(...): returns an ActionResult carrying the failure kind
  and message, for callers that need to tell failures apart

Failures are logged with their traceback. When the failing call owns the
database session (no enclosing transaction) the session is rolled back so
the next action starts clean.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..collections import UnknownCollectionError
from ..extensions import db
from .concurrency import in_unit_of_work
from .document_store import DocumentNotFoundError, DocumentStoreError, UnsupportedQueryError


class ActionError(Exception):
    """Base class for failures raised inside actions."""
    pass


class NotFoundError(ActionError):
    """A referenced entity does not exist."""
    pass


class ValidationError(ActionError):
    """Input rejected before any write."""
    pass


FAILURE_NOT_FOUND = "NOT_FOUND"
FAILURE_VALIDATION = "VALIDATION"
FAILURE_CONFLICT = "CONFLICT"
FAILURE_STORE = "STORE"
FAILURE_UNEXPECTED = "UNEXPECTED"


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    value: Any = None
    error_kind: str | None = None
    message: str | None = None


def classify_error(exc: BaseException) -> str:
    if isinstance(exc, (NotFoundError, DocumentNotFoundError)):
        return FAILURE_NOT_FOUND
    if isinstance(exc, (ValidationError, UnsupportedQueryError, UnknownCollectionError)):
        return FAILURE_VALIDATION
    if isinstance(exc, StaleDataError):
        return FAILURE_CONFLICT
    if isinstance(exc, (DocumentStoreError, SQLAlchemyError)):
        return FAILURE_STORE
    return FAILURE_UNEXPECTED


def _sentinel(failure):
    return failure() if callable(failure) else failure


def action_boundary(failure=None):
    """
    Decorate an action so it never raises.

    Args:
        failure: Value (or zero-argument factory such as `list`) returned by
            a plain call when the action fails
    """
    def decorator(func):
        @wraps(func)
        def result(*args, **kwargs) -> ActionResult:
            try:
                value = func(*args, **kwargs)
            except Exception as exc:
                if not in_unit_of_work():
                    db.session.rollback()
                kind = classify_error(exc)
                current_app.logger.exception("Action %s failed (%s)", func.__name__, kind)
                return ActionResult(ok=False, value=_sentinel(failure), error_kind=kind, message=str(exc))
            return ActionResult(ok=True, value=value)

        @wraps(func)
        def decorated_function(*args, **kwargs):
            return result(*args, **kwargs).value

        decorated_function.result = result
        return decorated_function

    return decorator
