"""csvreports.tools.db_postgres_tool

PostgreSQL execution tool backed by an explicitly constructed psycopg pool.

The pool is created once at startup (see `build_pool`) and injected; a
connection is borrowed for exactly one statement and returned immediately.
Values are always bound by the driver (`%s` placeholders), never interpolated.

Error mapping:
  - pool timeout, SQLSTATE class 08, authentication, server shutdown,
    or a client-side failure with no SQLSTATE -> ConnectivityError
  - any other server error (statement or lock timeout, deadlock, syntax,
    permission, constraint) -> ExecutionError
"""

from __future__ import annotations
from typing import Any, Optional, Sequence
import time

import psycopg
from psycopg import errors as pg_errors
from psycopg import sql as pg_sql
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from csvreports.contracts.tool_base import DatabaseTool
from csvreports.errors import ConnectivityError, ExecutionError

# Server errors that mean the session itself is unusable
_CONNECTION_FAILURES = (
    pg_errors.ConnectionException,
    pg_errors.InvalidAuthorizationSpecification,
    pg_errors.InvalidPassword,
    pg_errors.AdminShutdown,
    pg_errors.CrashShutdown,
    pg_errors.CannotConnectNow,
)


def is_connection_failure(exc: psycopg.Error) -> bool:
    if isinstance(exc, _CONNECTION_FAILURES):
        return True
    return isinstance(exc, psycopg.OperationalError) and exc.sqlstate is None


def build_pool(settings, logger) -> ConnectionPool:
    """Create the bounded connection pool described by `settings`."""
    conninfo = make_conninfo(
        host=settings.pg_host,
        port=settings.pg_port,
        dbname=settings.pg_database,
        user=settings.pg_user,
        password=settings.pg_password,
        sslmode=settings.pg_sslmode,
        connect_timeout=settings.connect_timeout_seconds,
    )
    logger.info(
        "PostgreSQL pool | host=%s port=%s db=%s user=%s password=%s min=%s max=%s",
        settings.pg_host, settings.pg_port, settings.pg_database, settings.pg_user,
        "*" * len(settings.pg_password or ""), settings.pool_min_size, settings.pool_max_size,
    )
    return ConnectionPool(
        conninfo,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        kwargs={"row_factory": dict_row},
        timeout=float(settings.connect_timeout_seconds),
        name="csvreports",
        open=True,
    )


class PostgresDatabaseTool(DatabaseTool):
    """Parameterized SQL execution wrapper for PostgreSQL."""

    backend = "postgres"

    def __init__(self, pool: ConnectionPool, logger, statement_timeout_seconds: int = 60):
        self.pool = pool
        self.logger = logger
        self.statement_timeout_seconds = statement_timeout_seconds

    def execute(self, sql: str, values: Sequence[Any] = (), schema: Optional[str] = None) -> list[dict[str, Any]]:
        start = time.time()
        params = list(values) if values else None
        try:
            with self.pool.connection() as conn:
                with conn.cursor() as cur:
                    # SET LOCAL only lasts for this transaction; the pool commits on return
                    if schema:
                        cur.execute(pg_sql.SQL("SET LOCAL search_path TO {}").format(pg_sql.Identifier(schema)))
                    if self.statement_timeout_seconds > 0:
                        cur.execute(
                            pg_sql.SQL("SET LOCAL statement_timeout = {}").format(
                                pg_sql.Literal(self.statement_timeout_seconds * 1000)
                            )
                        )
                    cur.execute(sql, params)
                    rows = cur.fetchall() if cur.description else []
        except PoolTimeout as e:
            raise ConnectivityError(str(e)) from e
        except psycopg.Error as e:
            if is_connection_failure(e):
                raise ConnectivityError(str(e)) from e
            raise ExecutionError(str(e)) from e

        self.logger.info("PostgreSQL.execute | rows=%s elapsed_ms=%s", len(rows), int((time.time() - start) * 1000))
        return [dict(r) for r in rows]

    def close(self) -> None:
        self.logger.info("PostgreSQL pool | closing")
        self.pool.close()
