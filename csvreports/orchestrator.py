"""csvreports.orchestrator

ReportCoordinator: drives one report request through its states.

    IDLE -> SCHEMA_KNOWN (optional) -> QUERYING -> SERIALIZING
         -> (CHUNKING -> MERGING) -> DONE
    any non-terminal state -> FAILED

Guardrails:
- output directory must resolve inside the output root, base name must be a plain stem
- exactly one corrective retry for ExecutionError while QUERYING (bounded by max_query_retries)
- no retry for connectivity, unsafe SQL, I/O or merge failures
- an empty result is DONE with no file

A coordinator instance serves a single request; build a new one per request.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence

from csvreports.contracts.models import ReportArtifact
from csvreports.contracts.outcome import Err, Ok, Outcome, ReportError
from csvreports.errors import ReportIOError
from csvreports.paths import final_path, resolve_output_dir, validate_base_name


class ReportState(str, Enum):
    IDLE = "IDLE"
    SCHEMA_KNOWN = "SCHEMA_KNOWN"
    QUERYING = "QUERYING"
    SERIALIZING = "SERIALIZING"
    CHUNKING = "CHUNKING"
    MERGING = "MERGING"
    DONE = "DONE"
    FAILED = "FAILED"


_TERMINAL = (ReportState.DONE, ReportState.FAILED)


@dataclass
class ReportCoordinator:
    query_runner: Any  # QueryRunner
    chunker: Any  # CsvChunker
    merger: Any  # PartMerger
    error_triage: Any  # ErrorTriage
    tracer: Any  # TraceCollector
    logger: Any
    output_root: Path
    catalog: Any = None  # CatalogReader, used for the optional schema check
    max_query_retries: int = 1
    state: ReportState = field(default=ReportState.IDLE)
    error: Optional[ReportError] = None

    def _transition(self, state: ReportState, **payload: Any) -> None:
        if self.state in _TERMINAL:
            raise RuntimeError(f"Coordinator already finished in state {self.state.value}")
        self.logger.info("ReportCoordinator | %s -> %s %s", self.state.value, state.value, payload or "")
        self.tracer.transition(self.state.value, state.value, **payload)
        self.state = state

    def _fail(self, error: ReportError) -> Err:
        self.error = error
        self._transition(ReportState.FAILED, kind=error.kind, phase=error.phase, message=error.message)
        return Err(error)

    def _query(self, statement: str, values: Sequence[Any], schema: Optional[str]):
        attempt = 0
        while True:
            self._transition(ReportState.QUERYING, attempt=attempt + 1)
            res = self.query_runner.run(statement, values, schema=schema)
            if isinstance(res, Ok):
                return res

            err = res.error
            if err.kind != "ExecutionError" or attempt >= self.max_query_retries:
                return res

            decision = self.error_triage.run(statement, values, err)
            if decision.action == "STOP":
                return res
            if decision.action == "RETRY_WITH_PATCH" and decision.patched_statement:
                statement = decision.patched_statement
            attempt += 1

    def generate_report(
        self,
        statement: str,
        values: Sequence[Any],
        base_name: str,
        output_dir: str | Path | None = None,
        schema: Optional[str] = None,
        verify_schema: bool = False,
    ) -> Outcome[ReportArtifact]:
        """Run the query and write `<base>.csv` (merging parts when the result is large)."""
        if self.state is not ReportState.IDLE:
            raise RuntimeError("ReportCoordinator instances serve a single request")

        try:
            base = validate_base_name(base_name)
            out_dir = resolve_output_dir(self.output_root, output_dir)
        except ReportIOError as e:
            return self._fail(ReportError.from_exception(e, "serialize"))

        if not (statement or "").strip():
            return self._fail(ReportError("ExecutionError", "Statement is empty", "query"))

        if schema and verify_schema and self.catalog is not None:
            known = self.catalog.has_schema(schema)
            if isinstance(known, Err):
                return self._fail(known.error)
            if not known.value:
                return self._fail(ReportError("ExecutionError", f"Schema '{schema}' not found in database", "catalog"))
            self._transition(ReportState.SCHEMA_KNOWN, schema=schema)

        res = self._query(statement, values, schema)
        if isinstance(res, Err):
            return self._fail(res.error)

        result = res.value
        if result.row_count == 0:
            self._transition(ReportState.DONE, row_count=0, file=None)
            return Ok(ReportArtifact(full_path=None, row_count=0))

        frame = self.query_runner.frame(result)
        self._transition(ReportState.SERIALIZING, row_count=frame.row_count, columns=len(frame.columns))

        if not self.chunker.needs_chunking(frame):
            single = self.chunker.write_single(frame, base, out_dir)
            if isinstance(single, Err):
                return self._fail(single.error)
            artifact = ReportArtifact(full_path=single.value.path, row_count=single.value.row_count)
            self._transition(ReportState.DONE, row_count=artifact.row_count, file=str(artifact.full_path))
            return Ok(artifact)

        self._transition(ReportState.CHUNKING, chunk_size=self.chunker.chunk_size)
        parts = self.chunker.write_parts(frame, base, out_dir)
        if isinstance(parts, Err):
            return self._fail(parts.error)

        self._transition(ReportState.MERGING, parts=[str(p.path) for p in parts.value])
        merged = self.merger.merge(parts.value, final_path(out_dir, base))
        if isinstance(merged, Err):
            return self._fail(merged.error)

        artifact = merged.value
        self._transition(ReportState.DONE, row_count=artifact.row_count, file=str(artifact.full_path))
        return Ok(artifact)
