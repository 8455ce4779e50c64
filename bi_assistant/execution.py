"""
Execution coordinator.

Runs a validated statement through the SQL executor. Missing product or
customer joins get one deterministic rewrite and exactly one retry; every
other failure is reported as a typed ExecutionError straight away.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, List

from .errors import DatabaseError, ExecutionError
from .models import ExecutionResult, QueryMetadata, QueryType, Row
from .sql.executor import SqlExecutor
from .sql.repair import REPAIRS, classify_failure, failure_message

logger = logging.getLogger(__name__)


def classify_query(sql: str) -> QueryType:
    upper = (sql or "").upper()
    if "GROUP BY" in upper:
        return QueryType.AGGREGATION
    if "ORDER BY" in upper:
        return QueryType.SORTED_LIST
    if "JOIN" in upper:
        return QueryType.RELATIONSHIP
    return QueryType.SIMPLE_SELECT


def build_metadata(sql: str, rows: List[Row], execution_time_ms: int) -> QueryMetadata:
    return QueryMetadata(
        row_count=len(rows),
        execution_time_ms=execution_time_ms,
        column_names=list(rows[0].keys()) if rows else [],
        query_type=classify_query(sql),
    )


class ExecutionCoordinator:
    def __init__(self, executor: SqlExecutor, clock: Callable[[], float] = time.perf_counter):
        self.executor = executor
        self._clock = clock

    def execute(self, sql: str) -> ExecutionResult:
        started = self._clock()
        try:
            rows = self.executor.execute_query(sql)
        except DatabaseError as e:
            executed, rows = self._recover(sql, e)
        else:
            executed = sql
        elapsed_ms = int(round((self._clock() - started) * 1000))
        return ExecutionResult(
            sql=executed,
            rows=rows,
            metadata=build_metadata(executed, rows, elapsed_ms),
            repaired=executed != sql,
        )

    def _recover(self, sql: str, error: DatabaseError):
        logger.warning("SQL execution failed for query: %s (%s)", sql, error.message)
        reason = classify_failure(error.message)
        repair = REPAIRS.get(reason)
        retried = False
        db_message = error.message

        if repair is not None:
            fixed = repair(sql)
            if fixed != sql:
                retried = True
                logger.info("Retrying with fixed SQL: %s", fixed)
                try:
                    return fixed, self.executor.execute_query(fixed)
                except DatabaseError as retry_error:
                    db_message = retry_error.message
                    logger.warning("Fixed SQL also failed: %s", retry_error.message)
            else:
                logger.info("No join repair applies to: %s", sql)

        raise ExecutionError(
            failure_message(reason, sql, error.message),
            reason=reason,
            sql=sql,
            db_message=db_message,
            retried=retried,
        ) from error
