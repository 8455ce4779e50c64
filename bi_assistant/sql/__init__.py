"""SQL utilities for the BI assistant."""
from .executor import DataFrameExecutor, SqlExecutor
from .extractor import extract_sql
from .repair import classify_failure, repair_customer_join, repair_product_join
from .safety import validate_sql

__all__ = [
    "DataFrameExecutor",
    "SqlExecutor",
    "extract_sql",
    "validate_sql",
    "classify_failure",
    "repair_product_join",
    "repair_customer_join",
]
