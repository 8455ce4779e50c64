from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

Row = Dict[str, Any]

SUCCESS_MESSAGE = "Query executed successfully"


class QueryType(str, Enum):
    AGGREGATION = "AGGREGATION"
    SORTED_LIST = "SORTED_LIST"
    RELATIONSHIP = "RELATIONSHIP"
    SIMPLE_SELECT = "SIMPLE_SELECT"


@dataclass(frozen=True)
class QueryMetadata:
    row_count: int
    execution_time_ms: int
    column_names: List[str]
    query_type: QueryType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row_count": self.row_count,
            "execution_time_ms": self.execution_time_ms,
            "column_names": list(self.column_names),
            "query_type": self.query_type.value,
        }


@dataclass(frozen=True)
class ExecutionResult:
    """What the coordinator hands back on success: the SQL that actually ran."""
    sql: str
    rows: List[Row]
    metadata: QueryMetadata
    repaired: bool = False


@dataclass(frozen=True)
class QueryOutcome:
    """
    Result of one pipeline run, success or failure.

    On failure `sql` is the statement that was attempted, when there was one.
    """
    success: bool
    message: str
    sql: Optional[str] = None
    rows: List[Row] = field(default_factory=list)
    metadata: Optional[QueryMetadata] = None

    @classmethod
    def ok(cls, result: ExecutionResult) -> "QueryOutcome":
        return cls(
            success=True,
            message=SUCCESS_MESSAGE,
            sql=result.sql,
            rows=result.rows,
            metadata=result.metadata,
        )

    @classmethod
    def failed(cls, message: str, sql: Optional[str] = None) -> "QueryOutcome":
        return cls(success=False, message=message, sql=sql)

    @property
    def query_type(self) -> Optional[QueryType]:
        return self.metadata.query_type if self.metadata else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "sql": self.sql,
            "rows": self.rows,
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }
