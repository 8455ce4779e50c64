"""
Typed errors raised by the query pipeline.

Each stage raises its own error kind; none of them is coerced into another.
QueryAssistant.answer() turns any AssistantError into a failed QueryOutcome.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class AssistantError(Exception):
    """Base class for every failure the pipeline reports as an outcome."""

    def __init__(self, message: str, sql: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.sql = sql


class GenerationError(AssistantError):
    """The text generator failed or returned nothing usable."""


class ExtractionError(AssistantError):
    """No recognizable SQL statement in the generated text."""

    def __init__(self, raw_text: str):
        super().__init__(f"Could not extract valid SQL from AI response: {raw_text}")
        self.raw_text = raw_text


# ----------------------------
# Safety
# ----------------------------
class SafetyError(AssistantError, ValueError):
    """Statement rejected before execution."""


class NotReadOnlyError(SafetyError):
    pass


class DangerousOperationError(SafetyError):
    pass


class CommentMarkerError(SafetyError):
    pass


# ----------------------------
# Execution
# ----------------------------
class DatabaseError(Exception):
    """Raised by SQL executors; carries the driver's message text."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FailureReason(str, Enum):
    MISSING_PRODUCT_JOIN = "missing_product_join"
    MISSING_CUSTOMER_JOIN = "missing_customer_join"
    UNKNOWN_RELATION = "unknown_relation"
    SYNTAX_ERROR = "syntax_error"
    GROUPING_ERROR = "grouping_error"
    DATABASE_ERROR = "database_error"


class ExecutionError(AssistantError):
    """
    Typed execution failure.

    `sql` is the statement originally attempted, `retried` tells whether a
    repaired statement was run as well, `db_message` is the last driver error.
    """

    def __init__(
        self,
        message: str,
        reason: FailureReason,
        sql: Optional[str] = None,
        db_message: Optional[str] = None,
        retried: bool = False,
    ):
        super().__init__(message, sql=sql)
        self.reason = reason
        self.db_message = db_message
        self.retried = retried


class QueryFailedError(AssistantError):
    """Raised by the rows-only entry point when the outcome is a failure."""
