"""csvreports.main

Wiring for tools + policies + catalog + writer + coordinator.

The connection pool is created here, once per process, and closed through
`ReportService.close()`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from csvreports.env_loader import load_env
from csvreports.config import Settings
from csvreports.logging_utils import build_logger

from csvreports.policy.sql_policy import SqlPolicy
from csvreports.catalog.reader import CatalogReader
from csvreports.query.runner import QueryRunner
from csvreports.export.csv_chunker import CsvChunker
from csvreports.export.part_merger import PartMerger
from csvreports.service import ReportService

from csvreports.tools.db_sqlite_tool import SqliteDatabaseTool


def build_service(settings: Optional[Settings] = None) -> ReportService:
    if settings is None:
        load_env()  # load .env if present
        settings = Settings.load()
    settings.validate()

    logger = build_logger(settings.log_dir, level=settings.log_level)
    logger.info("Settings | %s", settings.describe())

    catalog = None
    if settings.db_backend == "sqlite":
        db_tool = SqliteDatabaseTool(settings.sqlite_path, logger=logger)
    else:
        # Imported lazily so the sqlite backend runs without libpq available
        from csvreports.tools.db_postgres_tool import PostgresDatabaseTool, build_pool

        db_tool = PostgresDatabaseTool(
            build_pool(settings, logger),
            logger=logger,
            statement_timeout_seconds=settings.statement_timeout_seconds,
        )
        catalog = CatalogReader(db_tool, logger)

    sql_policy = SqlPolicy() if settings.enforce_read_only else None

    return ReportService(
        db_tool=db_tool,
        catalog=catalog,
        query_runner=QueryRunner(db_tool, logger, sql_policy=sql_policy),
        chunker=CsvChunker(logger, chunk_size=settings.chunk_size),
        merger=PartMerger(logger, retain_parts=settings.retain_parts),
        output_root=Path(settings.output_root),
        logger=logger,
        max_query_retries=settings.max_query_retries,
    )
