import logging
from typing import Any, Optional, Sequence

import pytest

from csvreports.contracts.tool_base import DatabaseTool
from csvreports.tracing import TraceCollector


class FakeDatabaseTool(DatabaseTool):
    """Replays queued responses; each entry is a list of rows or an exception to raise."""

    backend = "fake"

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def execute(self, sql: str, values: Sequence[Any] = (), schema: Optional[str] = None):
        self.calls.append({"sql": sql, "values": list(values), "schema": schema})
        if not self.responses:
            return []
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return [dict(r) for r in nxt]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def logger():
    return logging.getLogger("csvreports.tests")


@pytest.fixture
def tracer():
    return TraceCollector()


@pytest.fixture
def fake_db():
    return FakeDatabaseTool()


def make_rows(n: int) -> list[dict[str, Any]]:
    return [{"id": i, "name": f"row {i}"} for i in range(1, n + 1)]
