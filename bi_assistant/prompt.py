from __future__ import annotations

from datetime import date
from typing import List, Optional, Tuple

from .dates import DateContext, compute_date_context

SCHEMA_DESCRIPTION = """
Database Schema:

Tables:
1. products:
   - id (INTEGER, Primary Key)
   - product_name (VARCHAR) - Name of the product
   - category (VARCHAR) - Product category (Electronics, Appliances, Accessories, Furniture)
   - price (DECIMAL) - Product price
   - description (TEXT) - Product description
   - manufacturer (VARCHAR) - Product manufacturer

2. sales:
   - id (INTEGER, Primary Key)
   - product_id (INTEGER, Foreign Key to products.id)
   - sale_date (DATE) - Date of sale
   - revenue (DECIMAL) - Revenue from the sale
   - quantity (INTEGER) - Quantity sold
   - customer_id (INTEGER, Foreign Key to customers.id)
   - region (VARCHAR) - Sales region
   - sales_person (VARCHAR) - Name of sales person

3. customers:
   - id (INTEGER, Primary Key)
   - customer_name (VARCHAR) - Customer name
   - email (VARCHAR) - Customer email
   - phone (VARCHAR) - Customer phone
   - address (TEXT) - Customer address
   - city (VARCHAR) - Customer city
   - country (VARCHAR) - Customer country
   - customer_segment (VARCHAR) - Customer segment (Premium, Standard, Basic)

Important Notes:
- Use 'product_name' column for products table
- Always join tables properly using foreign keys
- Use appropriate date filtering for time-based queries
""".strip()

TOP_PRODUCTS_BY_REVENUE_SQL = (
    "SELECT p.product_name, SUM(s.revenue) AS total_revenue FROM products p "
    "JOIN sales s ON p.id = s.product_id GROUP BY p.product_name "
    "ORDER BY total_revenue DESC LIMIT 5;"
)

# (question, sql) pairs rendered into the prompt
PROMPT_EXAMPLES: List[Tuple[str, str]] = [
    ("top 5 products by revenue", TOP_PRODUCTS_BY_REVENUE_SQL),
    ("list all customers", "SELECT * FROM customers;"),
    (
        "revenue by category",
        "SELECT p.category, SUM(s.revenue) AS total_revenue FROM products p "
        "JOIN sales s ON p.id = s.product_id GROUP BY p.category ORDER BY total_revenue DESC;",
    ),
    (
        "average order value by customer segment",
        "SELECT c.customer_segment, AVG(order_total) AS avg_order_value FROM customers c "
        "JOIN (SELECT customer_id, SUM(p.price * s.quantity) AS order_total FROM sales s "
        "JOIN products p ON s.product_id = p.id GROUP BY customer_id) AS orders "
        "ON c.id = orders.customer_id GROUP BY c.customer_segment;",
    ),
    (
        "monthly sales trends",
        "SELECT EXTRACT(YEAR FROM sale_date) AS year, EXTRACT(MONTH FROM sale_date) AS month, "
        "SUM(revenue) AS monthly_revenue FROM sales "
        "GROUP BY EXTRACT(YEAR FROM sale_date), EXTRACT(MONTH FROM sale_date) ORDER BY year, month;",
    ),
]

# ----------------------------
# Query normalization
# ----------------------------
# Ordered; the first rule whose phrases all occur wins.
QUERY_REWRITES: List[Tuple[Tuple[str, ...], str]] = [
    (
        ("average order value", "customer segment"),
        "Calculate the average order value for each customer segment "
        "using subquery to calculate order totals first",
    ),
    (
        ("order value", "segment"),
        "Calculate average order value by customer segment with proper subquery aggregation",
    ),
    (
        ("monthly", "trend"),
        "Show monthly sales trends with year and month grouping",
    ),
]

PROMPT_TEMPLATE = """
You are a PostgreSQL expert. Translate the following natural language query to SQL.

Schema: {schema}

Natural Language Query: {query}

Date Context:
- Today: {today}
- Last quarter: {quarter_start} to {quarter_end}
- This year: {year_start} to {today}

CRITICAL RULES:
1. Return ONLY ONE executable SQL statement
2. NO explanations, NO comments, NO alternative queries
3. NO "OR" statements, NO multiple options
4. ALWAYS use JOINs when accessing data from multiple tables
5. For "list all customers" queries, use: SELECT * FROM customers;
6. Use table aliases: p for products, s for sales, c for customers
7. For nested aggregation, use subqueries or CTEs

CORRECT Examples:
{examples}

Return only the SQL query without any explanations:
""".strip()


def normalize_query(query: str) -> str:
    """Replace phrasings the model tends to get wrong with an explicit instruction."""
    low = (query or "").lower()
    for phrases, instruction in QUERY_REWRITES:
        if all(p in low for p in phrases):
            return instruction
    return query


def _render_examples() -> str:
    return "\n\n".join(f'- "{q}":\n  {sql}' for q, sql in PROMPT_EXAMPLES)


def render_prompt(query: str, dates: DateContext) -> str:
    return PROMPT_TEMPLATE.format(
        schema=SCHEMA_DESCRIPTION,
        query=query,
        examples=_render_examples(),
        **dates.as_prompt_vars(),
    )


def build_prompt(query: str, today: Optional[date] = None) -> str:
    """Normalize the question, compute date boundaries and render the prompt."""
    return render_prompt(normalize_query(query), compute_date_context(today))
