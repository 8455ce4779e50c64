"""
Pytest configuration and shared fixtures.
"""
import sqlite3

import pytest

from bi_assistant.config import get_settings


class FakeGenerator:
    """Text generator stand-in: returns a canned response and records prompts."""

    def __init__(self, response="SELECT 1", error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


class ScriptedExecutor:
    """
    SQL executor stand-in.

    Each call consumes the next scripted result (a list of rows, or an
    exception to raise); the last one repeats. Every SQL string is recorded.
    """

    def __init__(self, *results):
        self.results = list(results) or [[]]
        self.calls = []

    def execute_query(self, sql):
        self.calls.append(sql)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached per process; rebuild them around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_generator():
    return FakeGenerator


@pytest.fixture
def scripted_executor():
    return ScriptedExecutor


@pytest.fixture
def sales_db(tmp_path):
    """
    Create a temporary products/sales/customers SQLite database.
    Returns its SQLAlchemy URL.
    """
    db_path = tmp_path / "bi_sales.sqlite"
    conn = sqlite3.connect(str(db_path))

    conn.executescript("""
        CREATE TABLE products (
            id INTEGER PRIMARY KEY,
            product_name TEXT NOT NULL,
            category TEXT NOT NULL,
            price REAL NOT NULL,
            description TEXT,
            manufacturer TEXT
        );
        CREATE TABLE customers (
            id INTEGER PRIMARY KEY,
            customer_name TEXT NOT NULL,
            email TEXT,
            phone TEXT,
            address TEXT,
            city TEXT,
            country TEXT,
            customer_segment TEXT NOT NULL
        );
        CREATE TABLE sales (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            product_id INTEGER NOT NULL,
            sale_date TEXT NOT NULL,
            revenue REAL NOT NULL,
            quantity INTEGER NOT NULL,
            customer_id INTEGER NOT NULL,
            region TEXT NOT NULL,
            sales_person TEXT NOT NULL
        );
    """)

    conn.executemany("INSERT INTO products VALUES (?, ?, ?, ?, ?, ?)", [
        (1, "Laptop Pro", "Electronics", 1499.0, "15-inch laptop", "TechCorp"),
        (2, "Office Chair", "Furniture", 399.0, "Ergonomic chair", "ErgoHome"),
        (3, "USB-C Hub", "Accessories", 59.0, "7-in-1 hub", "PortMaster"),
    ])
    conn.executemany("INSERT INTO customers VALUES (?, ?, ?, ?, ?, ?, ?, ?)", [
        (1, "Acme Corp", "acme@example.com", None, "1 Main St", "New York", "USA", "Premium"),
        (2, "Globex", "globex@example.com", None, "2 Oak Ave", "Chicago", "USA", "Standard"),
        (3, "Initech", "initech@example.com", None, "3 Pine Rd", "Toronto", "Canada", "Basic"),
    ])
    conn.executemany("""
        INSERT INTO sales (product_id, sale_date, revenue, quantity, customer_id, region, sales_person)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, [
        (1, "2024-01-15", 2998.0, 2, 1, "North", "Alice Johnson"),
        (1, "2024-02-10", 1499.0, 1, 2, "South", "Bob Smith"),
        (2, "2024-02-11", 798.0, 2, 2, "South", "Bob Smith"),
        (3, "2024-03-01", 59.0, 1, 3, "East", "Carla Gomez"),
        (3, "2024-03-05", 118.0, 2, 1, "North", "Alice Johnson"),
    ])
    conn.commit()
    conn.close()

    return f"sqlite:///{db_path}"


# Markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
