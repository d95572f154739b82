import csv
from datetime import datetime

import pytest

from conftest import FakeDatabaseTool, make_rows
from csvreports.agents.error_triage import ErrorTriage
from csvreports.catalog.reader import CatalogReader
from csvreports.contracts.outcome import Err, Ok
from csvreports.errors import ConnectivityError, ExecutionError
from csvreports.export.csv_chunker import CsvChunker, format_value
from csvreports.export.part_merger import PartMerger
from csvreports.orchestrator import ReportCoordinator, ReportState
from csvreports.policy.sql_policy import SqlPolicy
from csvreports.query.runner import QueryRunner
from csvreports.tracing import TraceCollector


def _coordinator(db, logger, root, chunk_size=1000, catalog=None, retain_parts=False):
    tracer = TraceCollector()
    return ReportCoordinator(
        query_runner=QueryRunner(db, logger, sql_policy=SqlPolicy()),
        chunker=CsvChunker(logger, chunk_size=chunk_size),
        merger=PartMerger(logger, retain_parts=retain_parts),
        error_triage=ErrorTriage(tracer, logger),
        tracer=tracer,
        logger=logger,
        output_root=root,
        catalog=catalog,
    )


def test_empty_result_creates_no_file(tmp_path, logger):
    coord = _coordinator(FakeDatabaseTool([[]]), logger, tmp_path)
    res = coord.generate_report("SELECT * FROM orders", [], "report")

    assert isinstance(res, Ok)
    assert res.value.row_count == 0
    assert res.value.full_path is None
    assert list(tmp_path.iterdir()) == []
    assert coord.state is ReportState.DONE


def test_small_result_writes_single_file(tmp_path, logger):
    rows = [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}, {"id": 3, "name": "c"}]
    coord = _coordinator(FakeDatabaseTool([rows]), logger, tmp_path)
    res = coord.generate_report("SELECT id, name FROM t", [], "report")

    assert res.value.full_path == tmp_path.resolve() / "report.csv"
    assert res.value.row_count == 3
    lines = res.value.full_path.read_bytes().split(b"\r\n")
    assert lines[0] == b'"id","name"'
    assert lines[1:4] == [b'"1","a"', b'"2","b"', b'"3","c"']
    assert coord.tracer.states() == ["QUERYING", "SERIALIZING", "DONE"]


def test_large_result_is_chunked_and_merged(tmp_path, logger):
    coord = _coordinator(FakeDatabaseTool([make_rows(2500)]), logger, tmp_path, retain_parts=True)
    res = coord.generate_report("SELECT id, name FROM t", [], "report", "out")

    out = tmp_path.resolve() / "out"
    assert res.value.full_path == out / "report.csv"
    assert res.value.row_count == 2500
    assert [p.name for p in res.value.parts] == ["report.part1.csv", "report.part2.csv", "report.part3.csv"]

    counts = []
    for part in res.value.parts:
        with open(part, newline="", encoding="utf-8") as fh:
            counts.append(len(list(csv.reader(fh))) - 1)
    assert counts == [1000, 1000, 500]

    with open(out / "report.csv", newline="", encoding="utf-8") as fh:
        records = list(csv.reader(fh))
    assert len(records) == 2501
    assert sum(1 for r in records if r == ["id", "name"]) == 1
    assert coord.tracer.states() == ["QUERYING", "SERIALIZING", "CHUNKING", "MERGING", "DONE"]


def test_parts_are_removed_by_default(tmp_path, logger):
    coord = _coordinator(FakeDatabaseTool([make_rows(2500)]), logger, tmp_path)
    coord.generate_report("SELECT id, name FROM t", [], "report")
    assert sorted(p.name for p in tmp_path.iterdir()) == ["report.csv"]


def test_execution_error_is_retried_once_then_fails_with_retry_message(tmp_path, logger):
    db = FakeDatabaseTool([
        ExecutionError("permission denied for table orders"),
        ExecutionError("permission denied for table orders (second attempt)"),
        [{"id": 1}],
    ])
    coord = _coordinator(db, logger, tmp_path)
    res = coord.generate_report("SELECT * FROM orders", [], "report")

    assert isinstance(res, Err)
    assert res.error.kind == "ExecutionError"
    assert res.error.phase == "query"
    assert res.error.message == "permission denied for table orders (second attempt)"
    assert len(db.calls) == 2
    assert coord.state is ReportState.FAILED
    assert list(tmp_path.iterdir()) == []


def test_retry_succeeds_with_patched_identifier(tmp_path, logger):
    db = FakeDatabaseTool([
        ExecutionError('column "orderdate" does not exist'),
        [{"OrderDate": datetime(2024, 5, 1, 12, 0)}],
    ])
    coord = _coordinator(db, logger, tmp_path)
    res = coord.generate_report("SELECT OrderDate FROM orders WHERE id = %s", [7], "dates")

    assert isinstance(res, Ok)
    assert db.calls[1]["sql"] == 'SELECT "OrderDate" FROM orders WHERE id = %s'
    assert db.calls[1]["values"] == [7]
    assert res.value.full_path.read_text(encoding="utf-8") == '"OrderDate"\r\n"2024-05-01T12:00:00"\r\n'


def test_connectivity_error_is_not_retried(tmp_path, logger):
    db = FakeDatabaseTool([ConnectivityError("could not connect to server")])
    res = _coordinator(db, logger, tmp_path).generate_report("SELECT 1", [], "report")

    assert res.error.kind == "ConnectivityError"
    assert res.error.message == "could not connect to server"
    assert len(db.calls) == 1


def test_unsafe_statement_is_not_retried(tmp_path, logger):
    db = FakeDatabaseTool()
    res = _coordinator(db, logger, tmp_path).generate_report("DELETE FROM orders", [], "report")

    assert res.error.kind == "UnsafeSQLError"
    assert db.calls == []


def test_output_outside_root_fails_before_query(tmp_path, logger):
    db = FakeDatabaseTool([make_rows(1)])
    coord = _coordinator(db, logger, tmp_path / "reports")
    res = coord.generate_report("SELECT 1", [], "report", "../../etc")

    assert res.error.kind == "IOError"
    assert res.error.phase == "serialize"
    assert db.calls == []
    assert coord.state is ReportState.FAILED


def test_write_failure_surfaces_io_error(tmp_path, logger):
    (tmp_path / "taken").write_text("a file, not a directory")
    coord = _coordinator(FakeDatabaseTool([make_rows(3)]), logger, tmp_path)
    res = coord.generate_report("SELECT 1", [], "report", "taken")

    assert res.error.kind == "IOError"
    assert res.error.phase == "serialize"


def test_unknown_schema_fails_in_catalog_phase(tmp_path, logger):
    catalog = CatalogReader(FakeDatabaseTool([[{"schema_name": "public"}]]), logger)
    db = FakeDatabaseTool([make_rows(1)])
    res = _coordinator(db, logger, tmp_path, catalog=catalog).generate_report(
        "SELECT 1", [], "report", schema="sales", verify_schema=True
    )

    assert res.error.phase == "catalog"
    assert "sales" in res.error.message
    assert db.calls == []


def test_known_schema_is_passed_to_the_store(tmp_path, logger):
    catalog = CatalogReader(FakeDatabaseTool([[{"schema_name": "sales"}]]), logger)
    db = FakeDatabaseTool([make_rows(1)])
    coord = _coordinator(db, logger, tmp_path, catalog=catalog)
    coord.generate_report("SELECT 1", [], "report", schema="sales", verify_schema=True)

    assert db.calls[0]["schema"] == "sales"
    assert coord.tracer.states()[0] == "SCHEMA_KNOWN"


def test_round_trip_preserves_rows_and_nulls(tmp_path, logger):
    rows = [
        {"id": 1, "note": "", "tag": None, "at": datetime(2024, 1, 2, 3, 4, 5)},
        {"id": 2, "note": 'he said "ok", then left', "tag": "x", "at": None},
    ] + [{"id": i, "note": f"n{i}", "tag": None, "at": None} for i in range(3, 1502)]
    coord = _coordinator(FakeDatabaseTool([rows]), logger, tmp_path)
    res = coord.generate_report("SELECT * FROM t", [], "round")

    with open(res.value.full_path, newline="", encoding="utf-8") as fh:
        records = list(csv.reader(fh, quoting=csv.QUOTE_NOTNULL))
    assert records[0] == ["id", "note", "tag", "at"]
    expected = [[format_value(r[c]) for c in records[0]] for r in rows]
    assert records[1:] == expected


def test_regenerating_report_is_byte_identical(tmp_path, logger):
    rows = make_rows(1200)
    first = _coordinator(FakeDatabaseTool([rows]), logger, tmp_path).generate_report("SELECT 1", [], "again")
    content = first.value.full_path.read_bytes()
    first.value.full_path.unlink()

    second = _coordinator(FakeDatabaseTool([rows]), logger, tmp_path).generate_report("SELECT 1", [], "again")
    assert second.value.full_path.read_bytes() == content


def test_coordinator_serves_one_request(tmp_path, logger):
    coord = _coordinator(FakeDatabaseTool([[]]), logger, tmp_path)
    coord.generate_report("SELECT 1", [], "report")
    with pytest.raises(RuntimeError):
        coord.generate_report("SELECT 1", [], "report")
