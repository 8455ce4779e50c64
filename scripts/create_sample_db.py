#!/usr/bin/env python
"""
Create a sample bi_sales.sqlite database (products, sales, customers).

Run with: python -m scripts.create_sample_db
"""

import random
import sqlite3
from datetime import date, timedelta
from pathlib import Path

SCHEMA = """
CREATE TABLE IF NOT EXISTS products (
    id INTEGER PRIMARY KEY,
    product_name TEXT NOT NULL,
    category TEXT NOT NULL,
    price REAL NOT NULL,
    description TEXT,
    manufacturer TEXT
);
CREATE TABLE IF NOT EXISTS customers (
    id INTEGER PRIMARY KEY,
    customer_name TEXT NOT NULL,
    email TEXT,
    phone TEXT,
    address TEXT,
    city TEXT,
    country TEXT,
    customer_segment TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS sales (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id INTEGER NOT NULL REFERENCES products(id),
    sale_date TEXT NOT NULL,
    revenue REAL NOT NULL,
    quantity INTEGER NOT NULL,
    customer_id INTEGER NOT NULL REFERENCES customers(id),
    region TEXT NOT NULL,
    sales_person TEXT NOT NULL
);
"""

PRODUCTS = [
    (1, "Laptop Pro", "Electronics", 1499.00, "15-inch professional laptop", "TechCorp"),
    (2, "Gaming Laptop", "Electronics", 1899.00, "High refresh rate gaming laptop", "GameGear"),
    (3, "Smartphone X", "Electronics", 999.00, "Flagship smartphone", "TechCorp"),
    (4, "Wireless Earbuds", "Accessories", 149.00, "Noise cancelling earbuds", "SoundWave"),
    (5, "USB-C Hub", "Accessories", 59.00, "7-in-1 hub", "PortMaster"),
    (6, "Laptop Sleeve", "Accessories", 39.00, "Padded 15-inch sleeve", "CarryAll"),
    (7, "Espresso Machine", "Appliances", 549.00, "Dual boiler espresso machine", "BrewWorks"),
    (8, "Air Purifier", "Appliances", 299.00, "HEPA air purifier", "FreshAir"),
    (9, "Robot Vacuum", "Appliances", 449.00, "Self-emptying robot vacuum", "CleanBot"),
    (10, "Standing Desk", "Furniture", 699.00, "Electric height adjustable desk", "ErgoHome"),
    (11, "Office Chair", "Furniture", 399.00, "Ergonomic mesh chair", "ErgoHome"),
    (12, "Bookshelf", "Furniture", 189.00, "Five-tier oak bookshelf", "WoodCraft"),
]

CITIES = [
    ("New York", "USA"), ("Chicago", "USA"), ("Toronto", "Canada"),
    ("London", "UK"), ("Berlin", "Germany"), ("Sydney", "Australia"),
]
SEGMENTS = ["Premium", "Standard", "Basic"]
REGIONS = ["North", "South", "East", "West"]
SALES_PEOPLE = ["Alice Johnson", "Bob Smith", "Carla Gomez", "David Lee"]
FIRST_NAMES = ["Acme", "Globex", "Initech", "Umbrella", "Stark", "Wayne", "Wonka", "Hooli", "Vandelay", "Soylent"]
LAST_NAMES = ["Industries", "Corp", "Labs", "Holdings", "Trading"]


def _customers(rng: random.Random):
    rows = []
    for i in range(1, 31):
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)} {i}"
        city, country = rng.choice(CITIES)
        slug = name.lower().replace(" ", ".")
        rows.append((
            i, name, f"{slug}@example.com", f"+1-555-{1000 + i:04d}",
            f"{rng.randint(1, 999)} Market Street", city, country, rng.choice(SEGMENTS),
        ))
    return rows


def _sales(rng: random.Random, start: date, end: date):
    rows = []
    current = start
    while current <= end:
        for _ in range(rng.randint(0, 6)):
            product = rng.choice(PRODUCTS)
            quantity = rng.randint(1, 5)
            rows.append((
                product[0],
                current.isoformat(),
                round(product[3] * quantity * rng.uniform(0.85, 1.0), 2),
                quantity,
                rng.randint(1, 30),
                rng.choice(REGIONS),
                rng.choice(SALES_PEOPLE),
            ))
        current += timedelta(days=1)
    return rows


def create_sample_database(db_path: Path = None, seed: int = 42) -> Path:
    db_path = db_path or Path(__file__).resolve().parents[1] / "data" / "bi_sales.sqlite"
    db_path.parent.mkdir(parents=True, exist_ok=True)

    print(f"Creating sample database at: {db_path}")

    rng = random.Random(seed)
    today = date.today()
    start = today.replace(year=today.year - 1, month=1, day=1)

    conn = sqlite3.connect(str(db_path))
    cursor = conn.cursor()
    cursor.executescript(SCHEMA)

    # Clear existing data
    for table in ("sales", "customers", "products"):
        cursor.execute(f"DELETE FROM {table}")

    print("Generating sample sales...")
    cursor.executemany("INSERT INTO products VALUES (?, ?, ?, ?, ?, ?)", PRODUCTS)
    cursor.executemany("INSERT INTO customers VALUES (?, ?, ?, ?, ?, ?, ?, ?)", _customers(rng))
    cursor.executemany("""
        INSERT INTO sales (product_id, sale_date, revenue, quantity, customer_id, region, sales_person)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, _sales(rng, start, today))
    conn.commit()

    # Verify
    cursor.execute("SELECT COUNT(*), MIN(sale_date), MAX(sale_date) FROM sales")
    count, min_date, max_date = cursor.fetchone()
    conn.close()

    print(f"✅ Created {count:,} sample sales")
    print(f"   Date range: {min_date} to {max_date}")
    print(f"   Database: {db_path}")
    return db_path


if __name__ == "__main__":
    create_sample_database()
