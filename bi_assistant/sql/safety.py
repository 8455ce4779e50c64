from __future__ import annotations

import logging
import re
from typing import Optional

from ..errors import CommentMarkerError, DangerousOperationError, NotReadOnlyError

logger = logging.getLogger(__name__)

READ_ONLY_PREFIXES = ("SELECT", "WITH")
DANGEROUS_KEYWORDS = [
    "INSERT", "UPDATE", "DELETE", "DROP", "CREATE",
    "ALTER", "TRUNCATE", "EXEC", "EXECUTE",
]
DANGEROUS_RE = re.compile(r"\b(" + "|".join(DANGEROUS_KEYWORDS) + r")\b", re.IGNORECASE)
COMMENT_MARKERS = ("--", "/*", "*/")


def has_comment_markers(sql: str) -> bool:
    return any(m in sql for m in COMMENT_MARKERS)


def validate_sql(sql: Optional[str], reject_comments: bool = False) -> str:
    """
    Ensure SQL is a single read-only SELECT/WITH statement; returns it unchanged.

    Comment markers are only logged unless `reject_comments` is set.
    """
    stmt = sql or ""
    upper = stmt.upper().strip()
    if not upper.startswith(READ_ONLY_PREFIXES):
        raise NotReadOnlyError("Only SELECT queries are allowed", sql=stmt)

    if DANGEROUS_RE.search(upper):
        raise DangerousOperationError(
            "Query contains potentially dangerous SQL operations", sql=stmt
        )

    if has_comment_markers(stmt):
        if reject_comments:
            raise CommentMarkerError("Query contains SQL comment markers", sql=stmt)
        logger.warning("Query contains comment patterns, reviewing: %s", stmt)
    return stmt
