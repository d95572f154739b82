"""csvreports.service

Operations exposed to the calling agent. Every method returns an Outcome.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from csvreports.agents.error_triage import ErrorTriage
from csvreports.catalog.reader import DEFAULT_SCHEMA
from csvreports.contracts.models import QueryResult, ReportArtifact, TableDescriptor, TableRef
from csvreports.contracts.outcome import Err, Ok, Outcome, ReportError, fail
from csvreports.errors import ToolError
from csvreports.orchestrator import ReportCoordinator
from csvreports.tracing import TraceCollector


@dataclass
class ReportService:
    db_tool: Any  # DatabaseTool
    catalog: Any  # CatalogReader, None when the backend has no information_schema
    query_runner: Any  # QueryRunner
    chunker: Any  # CsvChunker
    merger: Any  # PartMerger
    output_root: Path
    logger: Any
    max_query_retries: int = 1

    def __enter__(self) -> "ReportService":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self.db_tool.close()

    def _catalog_or_error(self) -> Optional[Err]:
        if self.catalog is None:
            return fail("ExecutionError", f"Catalog introspection is not available on the {self.db_tool.backend} backend", "catalog")
        return None

    def ping(self) -> Outcome[str]:
        try:
            self.db_tool.ping()
        except ToolError as e:
            self.logger.error("ReportService.ping | connection failed: %s", e)
            return Err(ReportError.from_exception(e, "query"))
        return Ok("pong")

    def list_schemas(self) -> Outcome[list[str]]:
        return self._catalog_or_error() or self.catalog.list_schemas()

    def list_tables(self, schema: Optional[str] = DEFAULT_SCHEMA) -> Outcome[list[TableRef]]:
        return self._catalog_or_error() or self.catalog.list_tables(schema)

    def describe_table(self, table: str, schema: str = DEFAULT_SCHEMA) -> Outcome[TableDescriptor]:
        return self._catalog_or_error() or self.catalog.describe_table(schema, table)

    def describe_tables(self, schema: str = DEFAULT_SCHEMA) -> Outcome[list[TableDescriptor]]:
        return self._catalog_or_error() or self.catalog.describe_tables(schema)

    def run_query(self, statement: str, values: Sequence[Any] = (), schema: Optional[str] = DEFAULT_SCHEMA) -> Outcome[QueryResult]:
        return self.query_runner.run(statement, values, schema=schema)

    def coordinator(self) -> ReportCoordinator:
        """Fresh request-scoped coordinator with its own trace."""
        tracer = TraceCollector()
        return ReportCoordinator(
            query_runner=self.query_runner,
            chunker=self.chunker,
            merger=self.merger,
            error_triage=ErrorTriage(tracer, self.logger),
            tracer=tracer,
            logger=self.logger,
            output_root=self.output_root,
            catalog=self.catalog,
            max_query_retries=self.max_query_retries,
        )

    def generate_report(
        self,
        statement: str,
        values: Sequence[Any],
        base_name: str,
        output_dir: str | Path | None = None,
        schema: Optional[str] = DEFAULT_SCHEMA,
        verify_schema: bool = False,
    ) -> Outcome[ReportArtifact]:
        coord = self.coordinator()
        res = coord.generate_report(statement, values, base_name, output_dir, schema=schema, verify_schema=verify_schema)
        if isinstance(res, Ok):
            if res.value.created:
                self.logger.info("ReportService.generate_report | %s rows=%s", res.value.full_path, res.value.row_count)
            else:
                self.logger.info("ReportService.generate_report | no rows, no file generated")
        return res
