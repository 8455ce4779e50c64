from __future__ import annotations

from typing import List, Optional, Protocol

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from ..config import get_settings
from ..errors import DatabaseError
from ..models import Row


class SqlExecutor(Protocol):
    def execute_query(self, sql: str) -> List[Row]:
        """Run `sql` and return rows in column order; raise DatabaseError on failure."""
        ...


def _driver_message(exc: Exception) -> str:
    # Keep the driver's own text (e.g. 'column "x" does not exist'), not SQLAlchemy's wrapper
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig).strip()
    return str(exc).strip()


class DataFrameExecutor:
    """
    Executes SELECT statements through SQLAlchemy, as rows or a pandas DataFrame.

    Works against any SQLAlchemy URL; PostgreSQL in production, SQLite for the
    bundled sample database and the tests.
    """

    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None:
            engine = create_engine(database_url or get_settings().database_url)
        self.engine = engine

    def execute_frame(self, sql: str) -> pd.DataFrame:
        try:
            with self.engine.connect() as conn:
                return pd.read_sql_query(text(sql), conn)
        except (SQLAlchemyError, pd.errors.DatabaseError) as e:
            raise DatabaseError(_driver_message(e)) from e

    def execute_query(self, sql: str) -> List[Row]:
        # Driver values as-is: NULL stays None, integers stay int
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text(sql))
                return [dict(r) for r in result.mappings()]
        except SQLAlchemyError as e:
            raise DatabaseError(_driver_message(e)) from e

    def dispose(self) -> None:
        self.engine.dispose()
