"""csvreports.query.runner

Executes one parameterized statement and shapes the result.

Values are handed to the driver for binding; the statement text is never
interpolated. When a SqlPolicy is configured, statements it rejects return an
UnsafeSQLError outcome without reaching the store.
"""

from __future__ import annotations
from typing import Any, Optional, Sequence

from csvreports.contracts.models import QueryResult, RowFrame
from csvreports.contracts.outcome import Err, Ok, Outcome, ReportError
from csvreports.contracts.tool_base import DatabaseTool
from csvreports.errors import ToolError, UnsafeSQLError


class QueryRunner:
    name = "query_runner"

    def __init__(self, db_tool: DatabaseTool, logger, sql_policy=None):
        self.db = db_tool
        self.logger = logger
        self.sql_policy = sql_policy

    def run(self, statement: str, values: Sequence[Any] = (), schema: Optional[str] = None) -> Outcome[QueryResult]:
        self.logger.info("QueryRunner.run | schema=%s values=%s | %s", schema, len(values or ()), statement)

        if self.sql_policy is not None:
            try:
                self.sql_policy.enforce(statement)
            except UnsafeSQLError as e:
                self.logger.warning("QueryRunner.run | blocked: %s", e)
                return Err(ReportError.from_exception(e, "query"))

        try:
            rows = self.db.execute(statement, list(values or ()), schema=schema)
        except ToolError as e:
            self.logger.error("QueryRunner.run | %s: %s", e.kind, e)
            return Err(ReportError.from_exception(e, "query"))

        self.logger.info("QueryRunner.run | row_count=%s", len(rows))
        return Ok(QueryResult(row_count=len(rows), rows=rows))

    @staticmethod
    def frame(result: QueryResult, columns: Optional[Sequence[str]] = None) -> RowFrame:
        """Shape a query result into a RowFrame, optionally with an explicit projection."""
        return RowFrame.from_rows(result.rows, columns=columns)
