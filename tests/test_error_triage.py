from csvreports.agents.error_triage import ErrorTriage, requote_identifier
from csvreports.contracts.outcome import ReportError


def test_requote_mixed_case_identifier():
    sql = "SELECT o.CustomerId, o.total FROM orders o WHERE o.CustomerId = %s"
    assert requote_identifier(sql, "customerid") == 'SELECT o."CustomerId", o.total FROM orders o WHERE o."CustomerId" = %s'


def test_requote_leaves_quoted_and_literal_text_alone():
    sql = "SELECT \"CustomerId\", 'CustomerId' FROM t"
    assert requote_identifier(sql, "customerid") is None


def test_requote_ignores_lower_case_words():
    assert requote_identifier("SELECT customerid FROM t", "customerid") is None


def test_missing_column_gets_patched_retry(tracer, logger):
    err = ReportError("ExecutionError", 'column "orderdate" does not exist', "query")
    decision = ErrorTriage(tracer, logger).run("SELECT OrderDate FROM orders", [], err)

    assert decision.action == "RETRY_WITH_PATCH"
    assert decision.patched_statement == 'SELECT "OrderDate" FROM orders'
    assert tracer.steps() == ["error_triage"]


def test_missing_relation_with_schema_prefix(tracer, logger):
    err = ReportError("ExecutionError", 'relation "sales.orderlines" does not exist', "query")
    decision = ErrorTriage(tracer, logger).run("SELECT * FROM sales.OrderLines", [], err)
    assert decision.patched_statement == 'SELECT * FROM sales."OrderLines"'


def test_other_execution_errors_retry_unchanged(tracer, logger):
    err = ReportError("ExecutionError", "permission denied for table orders", "query")
    decision = ErrorTriage(tracer, logger).run("SELECT * FROM orders", [], err)
    assert decision.action == "RETRY"
    assert decision.patched_statement is None


def test_connectivity_errors_stop(tracer, logger):
    err = ReportError("ConnectivityError", "connection refused", "query")
    assert ErrorTriage(tracer, logger).run("SELECT 1", [], err).action == "STOP"
