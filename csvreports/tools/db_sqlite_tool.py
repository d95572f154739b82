"""csvreports.tools.db_sqlite_tool

SQLite execution tool (testing/dev). Uses `?` placeholders; `schema` is ignored.
"""

from __future__ import annotations
import sqlite3
import time
from typing import Any, Optional, Sequence

from csvreports.contracts.tool_base import DatabaseTool
from csvreports.errors import ConnectivityError, ExecutionError


class SqliteDatabaseTool(DatabaseTool):
    """SQLite execution wrapper."""

    backend = "sqlite"

    def __init__(self, sqlite_path: str, logger, timeout_seconds: int = 20):
        self.sqlite_path = sqlite_path
        self.logger = logger
        self.timeout_seconds = timeout_seconds

    def execute(self, sql: str, values: Sequence[Any] = (), schema: Optional[str] = None) -> list[dict[str, Any]]:
        start = time.time()
        try:
            conn = sqlite3.connect(self.sqlite_path, timeout=self.timeout_seconds)
        except sqlite3.Error as e:
            raise ConnectivityError(str(e)) from e
        try:
            cur = conn.cursor()
            cur.execute(sql, tuple(values))
            columns = [d[0] for d in cur.description] if cur.description else []
            rows = cur.fetchall() if cur.description else []
            conn.commit()
        except sqlite3.OperationalError as e:
            if "unable to open database" in str(e):
                raise ConnectivityError(str(e)) from e
            raise ExecutionError(str(e)) from e
        except sqlite3.Error as e:
            raise ExecutionError(str(e)) from e
        finally:
            conn.close()

        self.logger.info("SQLite.execute | rows=%s elapsed_ms=%s", len(rows), int((time.time() - start) * 1000))
        return [dict(zip(columns, r)) for r in rows]
