"""
Non-interactive core for the BI assistant.

This module:
- Accepts a natural language business question
- Runs prompt -> generation -> extraction -> safety -> execution
- Returns a QueryOutcome, never raises across the boundary
- Short-circuits repeated questions through the outcome cache
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from .cache import OutcomeCache
from .config import Settings, get_settings
from .errors import AssistantError, GenerationError, QueryFailedError
from .execution import ExecutionCoordinator
from .generator import TextGenerator, configure_generator
from .models import QueryOutcome, Row
from .prompt import build_prompt
from .sql.executor import DataFrameExecutor, SqlExecutor
from .sql.extractor import extract_sql
from .sql.safety import validate_sql

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."
SETUP_ERROR_MESSAGE = "The query assistant could not be initialized: {error}"

SAMPLE_QUERIES = [
    "Show me the top 5 products by revenue last quarter",
    "What is the total revenue by category this year?",
    "Which customers bought the most products?",
    "Show me sales trends by region",
    "What are the best selling products in Electronics category?",
    "Show me monthly revenue for this year",
    "Which sales person has the highest revenue?",
    "What is the average order value by customer segment?",
]


class QueryAssistant:
    """
    Turns one natural-language question into one executed SELECT.

    At most one generator call and two executor calls per uncached question,
    strictly in sequence.
    """

    def __init__(
        self,
        generator: Optional[TextGenerator],
        executor: SqlExecutor,
        cache: Optional[OutcomeCache] = None,
        reject_sql_comments: bool = False,
    ):
        self.generator = generator
        self.coordinator = ExecutionCoordinator(executor)
        self.cache = cache if cache is not None else OutcomeCache()
        self.reject_sql_comments = reject_sql_comments

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "QueryAssistant":
        settings = settings or get_settings()
        return cls(
            generator=configure_generator(settings),
            executor=DataFrameExecutor(settings.database_url),
            cache=OutcomeCache(max_size=settings.cache_size or None),
            reject_sql_comments=settings.reject_sql_comments,
        )

    def answer(self, query: str) -> QueryOutcome:
        cached = self.cache.get(query)
        if cached is not None:
            logger.info("Cache hit for query: %s", query)
            return cached
        outcome = self._run(query)
        self.cache.put(query, outcome)
        return outcome

    def fetch_rows(self, query: str) -> List[Row]:
        """Rows-only entry point; raises QueryFailedError instead of returning a failed outcome."""
        outcome = self.answer(query)
        if not outcome.success:
            raise QueryFailedError(outcome.message, sql=outcome.sql)
        return outcome.rows

    def clear_cache(self) -> None:
        self.cache.clear()

    def generate_sql(self, query: str) -> str:
        raw = self._generate(build_prompt(query))
        sql = extract_sql(raw)
        logger.info("Generated SQL: %s", sql)
        return validate_sql(sql, reject_comments=self.reject_sql_comments)

    def _generate(self, prompt: str) -> str:
        if self.generator is None:
            raise GenerationError(
                "Failed to generate SQL query: no text generator configured (set OPENAI_API_KEY)"
            )
        try:
            raw = self.generator.generate(prompt)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Failed to generate SQL query: {e}") from e
        if not isinstance(raw, str) or not raw.strip():
            raise GenerationError("Failed to generate SQL query: Empty response from AI model")
        return raw

    def _run(self, query: str) -> QueryOutcome:
        logger.info("Processing natural language query: %s", query)
        sql: Optional[str] = None
        try:
            sql = self.generate_sql(query)
            result = self.coordinator.execute(sql)
        except AssistantError as e:
            logger.error("Error processing query: %s", e.message, exc_info=True)
            return QueryOutcome.failed(e.message, sql=e.sql or sql)
        except Exception:
            logger.exception("Unexpected error processing query: %s", query)
            return QueryOutcome.failed(UNEXPECTED_ERROR_MESSAGE, sql=sql)
        return QueryOutcome.ok(result)


# ============================================================
# Default assistant, built lazily from the environment
# ============================================================
_default_assistant: Optional[QueryAssistant] = None
_default_lock = threading.Lock()


def get_assistant() -> QueryAssistant:
    global _default_assistant
    with _default_lock:
        if _default_assistant is None:
            _default_assistant = QueryAssistant.from_settings()
        return _default_assistant


def answer(query: str) -> QueryOutcome:
    try:
        assistant = get_assistant()
    except Exception as e:
        # Not cached; the next call tries to build the assistant again
        logger.exception("Could not build the default query assistant")
        return QueryOutcome.failed(SETUP_ERROR_MESSAGE.format(error=e))
    return assistant.answer(query)


def analyze_query(query: str) -> Dict[str, Any]:
    """Pipeline entrypoint for API usage: the outcome as a plain dict."""
    return answer(query).to_dict()
