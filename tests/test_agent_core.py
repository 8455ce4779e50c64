"""
Tests for the end-to-end query pipeline.
Generation and execution are faked except where a SQLite database is used.
"""
import pytest

from bi_assistant import agent_core
from bi_assistant.agent_core import UNEXPECTED_ERROR_MESSAGE, QueryAssistant
from bi_assistant.cache import OutcomeCache
from bi_assistant.errors import DatabaseError, QueryFailedError
from bi_assistant.models import SUCCESS_MESSAGE, QueryType
from bi_assistant.prompt import TOP_PRODUCTS_BY_REVENUE_SQL
from bi_assistant.sql.executor import DataFrameExecutor

TOP_PRODUCTS_SQL = TOP_PRODUCTS_BY_REVENUE_SQL.rstrip(";")
TOP_PRODUCTS_ROWS = [
    {"product_name": "Laptop Pro", "total_revenue": 4497.0},
    {"product_name": "Office Chair", "total_revenue": 798.0},
    {"product_name": "USB-C Hub", "total_revenue": 177.0},
]


class TestAnswerSuccess:
    """Test the happy path."""

    def test_top_products(self, fake_generator, scripted_executor):
        """Test the canonical question runs the cleaned statement once."""
        generator = fake_generator(TOP_PRODUCTS_BY_REVENUE_SQL)
        executor = scripted_executor(TOP_PRODUCTS_ROWS)
        outcome = QueryAssistant(generator, executor).answer(
            "Show me the top 5 products by revenue"
        )

        assert outcome.success is True
        assert outcome.message == SUCCESS_MESSAGE
        assert outcome.sql == TOP_PRODUCTS_SQL
        assert outcome.rows == TOP_PRODUCTS_ROWS
        assert outcome.metadata.row_count == 3
        assert outcome.metadata.column_names == ["product_name", "total_revenue"]
        assert outcome.query_type is QueryType.AGGREGATION
        assert executor.calls == [TOP_PRODUCTS_SQL]

    def test_prompt_carries_question(self, fake_generator, scripted_executor):
        """Test the generator receives the rendered prompt."""
        generator = fake_generator("SELECT * FROM customers;")
        QueryAssistant(generator, scripted_executor()).answer("list all customers")
        assert len(generator.prompts) == 1
        assert "Natural Language Query: list all customers" in generator.prompts[0]

    def test_verbose_model_output(self, fake_generator, scripted_executor):
        """Test prose and fences around the statement are stripped before execution."""
        raw = "Here is the query:\n```sql\nSELECT * FROM customers;\n```\nNote: returns every row."
        executor = scripted_executor([{"id": 1}])
        outcome = QueryAssistant(fake_generator(raw), executor).answer("list all customers")
        assert outcome.success is True
        assert executor.calls == ["SELECT * FROM customers"]

    def test_repaired_statement_reported(self, fake_generator, scripted_executor):
        """Test the outcome carries the SQL that actually ran."""
        executor = scripted_executor(
            DatabaseError('column "product_name" does not exist'),
            [{"product_name": "Laptop Pro"}],
        )
        outcome = QueryAssistant(fake_generator("SELECT product_name FROM sales"), executor).answer(
            "which products sold"
        )
        assert outcome.success is True
        assert outcome.sql == "SELECT p.product_name FROM products p JOIN sales s ON p.id = s.product_id"
        assert len(executor.calls) == 2

    @pytest.mark.integration
    def test_against_sqlite(self, fake_generator, sales_db):
        """Test the full pipeline against a real SQLite database."""
        executor = DataFrameExecutor(sales_db)
        try:
            outcome = QueryAssistant(fake_generator(TOP_PRODUCTS_BY_REVENUE_SQL), executor).answer(
                "Show me the top 5 products by revenue"
            )
        finally:
            executor.dispose()

        assert outcome.success is True
        assert outcome.sql == TOP_PRODUCTS_SQL
        assert [r["product_name"] for r in outcome.rows] == ["Laptop Pro", "Office Chair", "USB-C Hub"]
        assert outcome.rows[0]["total_revenue"] == pytest.approx(4497.0)
        assert outcome.metadata.column_names == ["product_name", "total_revenue"]
        assert outcome.query_type is QueryType.AGGREGATION


class TestAnswerFailures:
    """Test each stage's failure becomes a failed outcome."""

    def test_no_generator(self, scripted_executor):
        """Test a missing generator fails generation."""
        executor = scripted_executor()
        outcome = QueryAssistant(None, executor).answer("list all customers")
        assert outcome.success is False
        assert outcome.message.startswith("Failed to generate SQL query")
        assert outcome.sql is None
        assert executor.calls == []

    def test_generator_raises(self, fake_generator, scripted_executor):
        """Test generator exceptions are wrapped."""
        generator = fake_generator(error=RuntimeError("rate limited"))
        outcome = QueryAssistant(generator, scripted_executor()).answer("list all customers")
        assert outcome.success is False
        assert outcome.message == "Failed to generate SQL query: rate limited"

    def test_generator_empty(self, fake_generator, scripted_executor):
        """Test blank generator output fails generation."""
        outcome = QueryAssistant(fake_generator("   "), scripted_executor()).answer("list all customers")
        assert outcome.success is False
        assert "Empty response" in outcome.message

    def test_extraction_failure(self, fake_generator, scripted_executor):
        """Test prose without SQL fails extraction and never executes."""
        executor = scripted_executor()
        outcome = QueryAssistant(fake_generator("I cannot help with that."), executor).answer(
            "tell me a joke"
        )
        assert outcome.success is False
        assert outcome.message.startswith("Could not extract valid SQL from AI response")
        assert executor.calls == []

    def test_safety_failure(self, fake_generator, scripted_executor):
        """Test a mutating statement is rejected and never executes."""
        executor = scripted_executor()
        outcome = QueryAssistant(fake_generator("DELETE FROM sales;"), executor).answer(
            "remove all sales"
        )
        assert outcome.success is False
        assert outcome.message == "Only SELECT queries are allowed"
        assert outcome.sql == "DELETE FROM sales"
        assert executor.calls == []

    def test_dangerous_keyword(self, fake_generator, scripted_executor):
        """Test a SELECT smuggling a mutation is rejected."""
        executor = scripted_executor()
        outcome = QueryAssistant(
            fake_generator("SELECT * FROM sales WHERE 1 = 1 OR DROP"), executor
        ).answer("sales")
        assert outcome.success is False
        assert outcome.message == "Query contains potentially dangerous SQL operations"
        assert executor.calls == []

    def test_comment_rejection_switch(self, fake_generator, scripted_executor):
        """Test comments fail only when rejection is enabled."""
        sql = "SELECT * FROM customers -- every customer"
        allowed = QueryAssistant(fake_generator(sql), scripted_executor([]))
        assert allowed.answer("list all customers").success is True

        strict = QueryAssistant(fake_generator(sql), scripted_executor([]), reject_sql_comments=True)
        assert strict.answer("list all customers").success is False

    def test_execution_failure(self, fake_generator, scripted_executor):
        """Test typed execution failures surface their message and SQL."""
        executor = scripted_executor(DatabaseError('relation "orders" does not exist'))
        outcome = QueryAssistant(fake_generator("SELECT * FROM orders"), executor).answer("orders")
        assert outcome.success is False
        assert outcome.message == "Referenced table or column does not exist in the database"
        assert outcome.sql == "SELECT * FROM orders"
        assert outcome.rows == []
        assert outcome.metadata is None

    def test_unexpected_error(self, fake_generator, scripted_executor):
        """Test unexpected exceptions become a generic failed outcome."""
        executor = scripted_executor(RuntimeError("driver crashed"))
        outcome = QueryAssistant(fake_generator("SELECT 1"), executor).answer("one")
        assert outcome.success is False
        assert outcome.message == UNEXPECTED_ERROR_MESSAGE
        assert outcome.sql == "SELECT 1"


class TestCaching:
    """Test outcome caching at the assistant boundary."""

    def test_repeat_question_served_from_cache(self, fake_generator, scripted_executor):
        """Test a repeated question calls neither generator nor executor again."""
        generator = fake_generator("SELECT * FROM customers")
        executor = scripted_executor([{"id": 1}])
        assistant = QueryAssistant(generator, executor)

        first = assistant.answer("list all customers")
        second = assistant.answer("list all customers")

        assert second == first
        assert len(generator.prompts) == 1
        assert len(executor.calls) == 1

    def test_cached_rows_are_independent(self, fake_generator, scripted_executor):
        """Test a caller editing its rows does not change later answers."""
        assistant = QueryAssistant(fake_generator("SELECT * FROM customers"), scripted_executor([{"id": 1}]))

        first = assistant.answer("list all customers")
        first.rows.append({"id": 999})
        first.rows[0]["id"] = -1

        second = assistant.answer("list all customers")
        assert second.rows == [{"id": 1}]
        assert len(second.rows) == second.metadata.row_count

    def test_failures_are_cached(self, fake_generator, scripted_executor):
        """Test failed outcomes are cached too."""
        generator = fake_generator("no sql here")
        assistant = QueryAssistant(generator, scripted_executor())
        assistant.answer("nonsense")
        assistant.answer("nonsense")
        assert len(generator.prompts) == 1

    def test_different_text_misses(self, fake_generator, scripted_executor):
        """Test keys are the exact question text."""
        generator = fake_generator("SELECT * FROM customers")
        assistant = QueryAssistant(generator, scripted_executor())
        assistant.answer("list all customers")
        assistant.answer("List all customers")
        assert len(generator.prompts) == 2

    def test_clear_cache(self, fake_generator, scripted_executor):
        """Test clearing forces a fresh run."""
        generator = fake_generator("SELECT * FROM customers")
        assistant = QueryAssistant(generator, scripted_executor(), cache=OutcomeCache(max_size=4))
        assistant.answer("list all customers")
        assistant.clear_cache()
        assistant.answer("list all customers")
        assert len(generator.prompts) == 2


class TestFetchRows:
    """Test the rows-only entry point."""

    def test_returns_rows(self, fake_generator, scripted_executor):
        """Test rows are returned on success."""
        assistant = QueryAssistant(fake_generator("SELECT * FROM customers"), scripted_executor([{"id": 7}]))
        assert assistant.fetch_rows("list all customers") == [{"id": 7}]

    def test_raises_on_failure(self, fake_generator, scripted_executor):
        """Test failures raise QueryFailedError with the message."""
        assistant = QueryAssistant(fake_generator("DELETE FROM sales;"), scripted_executor())
        with pytest.raises(QueryFailedError, match="Only SELECT queries are allowed") as exc_info:
            assistant.fetch_rows("drop everything")
        assert exc_info.value.sql == "DELETE FROM sales"


class TestModuleEntrypoints:
    """Test the module-level helpers."""

    def test_analyze_query_dict(self, monkeypatch, fake_generator, scripted_executor):
        """Test analyze_query returns a plain dict."""
        assistant = QueryAssistant(fake_generator("SELECT * FROM customers"), scripted_executor([{"id": 1}]))
        monkeypatch.setattr(agent_core, "_default_assistant", assistant)

        result = agent_core.analyze_query("list all customers")

        assert result["success"] is True
        assert result["message"] == SUCCESS_MESSAGE
        assert result["sql"] == "SELECT * FROM customers"
        assert result["rows"] == [{"id": 1}]
        assert result["metadata"] == {
            "row_count": 1,
            "execution_time_ms": result["metadata"]["execution_time_ms"],
            "column_names": ["id"],
            "query_type": "SIMPLE_SELECT",
        }

    def test_analyze_query_failure_dict(self, monkeypatch, fake_generator, scripted_executor):
        """Test failed outcomes serialize without metadata."""
        assistant = QueryAssistant(fake_generator("nothing useful"), scripted_executor())
        monkeypatch.setattr(agent_core, "_default_assistant", assistant)

        result = agent_core.analyze_query("???")
        assert result["success"] is False
        assert result["rows"] == []
        assert result["metadata"] is None

    @pytest.mark.parametrize("cache_size", ["abc", "-3"])
    def test_bad_settings_return_failed_outcome(self, monkeypatch, cache_size):
        """Test a default assistant that cannot be built yields a failed outcome."""
        monkeypatch.setattr(agent_core, "_default_assistant", None)
        monkeypatch.setenv("BI_ASSISTANT_CACHE_SIZE", cache_size)

        outcome = agent_core.answer("list all customers")
        assert outcome.success is False
        assert outcome.message.startswith("The query assistant could not be initialized")
        assert "BI_ASSISTANT_CACHE_SIZE" in outcome.message
        assert agent_core._default_assistant is None

        result = agent_core.analyze_query("list all customers")
        assert result["success"] is False
        assert result["metadata"] is None

    def test_sample_queries(self):
        """Test sample questions are exposed."""
        assert len(agent_core.SAMPLE_QUERIES) == 8
        assert all(isinstance(q, str) and q for q in agent_core.SAMPLE_QUERIES)
