# BI Query Assistant - natural language questions over sales data
"""
BI Query Assistant - turns business questions into one safe, read-only SQL
statement, runs it, and returns rows with metadata.
"""

__version__ = "0.1.0"

from .agent_core import QueryAssistant, analyze_query, answer, SAMPLE_QUERIES
from .cache import OutcomeCache
from .models import QueryMetadata, QueryOutcome, QueryType

__all__ = [
    "__version__",
    "QueryAssistant",
    "answer",
    "analyze_query",
    "SAMPLE_QUERIES",
    "OutcomeCache",
    "QueryMetadata",
    "QueryOutcome",
    "QueryType",
]
