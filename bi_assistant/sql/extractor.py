"""
Reduce free-form model output to exactly one SQL statement.

Line-oriented and order-preserving; the first plausible statement wins and
anything after an "OR" line (an alternative the model offered) is dropped.
"""
from __future__ import annotations

import re
from typing import List

from ..errors import ExtractionError

FENCE_RE = re.compile(r"```(?:sql)?\s*", re.IGNORECASE)
WHITESPACE_RE = re.compile(r"\s+")
TRAILING_SEMICOLON_RE = re.compile(r";\s*$")

EXPLANATION_PREFIXES = ("to ", "if you", "note:", "explanation:", "for ")
EXPLANATION_PHRASES = ("you can add", "filter results")
STATEMENT_KEYWORDS = ("SELECT", "INSERT", "UPDATE", "DELETE")
# whole keywords only; WITH must open a CTE ("WITH name AS", "WITH RECURSIVE ...") or stand alone
STATEMENT_START_RE = re.compile(
    r"^(?:(?:" + "|".join(STATEMENT_KEYWORDS) + r")\b"
    r"|WITH\s*$|WITH\s+(?:RECURSIVE\s+)?\w+(?:\s*\([^)]*\))?\s+AS\b)",
    re.IGNORECASE,
)
SELECT_RE = re.compile(r"\bSELECT\b", re.IGNORECASE)
ALTERNATIVE_MARKER = "OR"


def strip_code_fences(text: str) -> str:
    return FENCE_RE.sub("", text or "").strip()


def is_explanatory(line: str) -> bool:
    low = line.lower()
    return low.startswith(EXPLANATION_PREFIXES) or any(p in low for p in EXPLANATION_PHRASES)


def starts_statement(line: str) -> bool:
    return STATEMENT_START_RE.match(line) is not None


def scan_statement_lines(text: str) -> str:
    """Capture from the first statement keyword up to a line ending with ';'."""
    captured: List[str] = []
    capturing = False
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line or is_explanatory(line):
            continue
        if line.upper() == ALTERNATIVE_MARKER:
            break
        if not capturing and starts_statement(line):
            capturing = True
        if capturing:
            captured.append(line)
            if line.endswith(";"):
                break
    return " ".join(captured).strip()


def fallback_select_scan(text: str) -> str:
    """From the first SELECT anywhere: to the first ';' (kept), else end of line, else end of text."""
    match = SELECT_RE.search(text)
    if match is None:
        return ""
    tail = text[match.start():]
    semicolon = tail.find(";")
    if semicolon > 0:
        return tail[: semicolon + 1].strip()
    newline = tail.find("\n")
    if newline > 0:
        return tail[:newline].strip()
    return tail.strip()


def collapse_whitespace(sql: str) -> str:
    return WHITESPACE_RE.sub(" ", sql).strip()


def extract_sql(raw: str) -> str:
    """
    Return the single normalized statement in `raw`.

    The result has collapsed whitespace and no trailing semicolon. Raises
    ExtractionError, carrying the raw text, when nothing plausible is found.
    """
    text = strip_code_fences(raw)
    sql = scan_statement_lines(text)
    if not sql:
        sql = fallback_select_scan(text)
    sql = collapse_whitespace(sql)
    sql = TRAILING_SEMICOLON_RE.sub("", sql).strip()
    if not sql:
        raise ExtractionError(raw)
    return sql
