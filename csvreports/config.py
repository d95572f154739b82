"""csvreports.config

Centralized configuration for the report service.

Uses environment variables to avoid hardcoded secrets. The PG* names follow
libpq so the same .env works with psql.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import os

from csvreports.errors import ConfigError
from csvreports.paths import data_dir


def _env(name: str, default: str | None = None) -> str | None:
    val = os.getenv(name)
    return val if val is not None else default


def _env_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Service settings loaded from environment variables."""

    # Store
    db_backend: str  # postgres|sqlite
    pg_host: str
    pg_port: int
    pg_database: str | None
    pg_user: str | None
    pg_password: str | None
    pg_sslmode: str
    sqlite_path: str

    # Pool
    pool_min_size: int
    pool_max_size: int
    connect_timeout_seconds: int
    statement_timeout_seconds: int

    # Reports
    output_root: str
    chunk_size: int
    retain_parts: bool
    enforce_read_only: bool
    max_query_retries: int

    # Logging
    log_dir: str
    log_level: str

    @staticmethod
    def load() -> "Settings":
        return Settings(
            db_backend=(_env("DB_BACKEND", "postgres") or "postgres").strip().lower(),
            pg_host=_env("PGHOST", "localhost") or "localhost",
            pg_port=_env_int("PGPORT", 5432),
            pg_database=_env("PGDATABASE"),
            pg_user=_env("PGUSER"),
            pg_password=_env("PGPASSWORD"),
            pg_sslmode=_env("PGSSLMODE", "prefer") or "prefer",
            sqlite_path=_env("SQLITE_PATH", "data/reports.db") or "data/reports.db",
            pool_min_size=_env_int("DB_POOL_MIN_SIZE", 0),
            pool_max_size=_env_int("DB_POOL_MAX_SIZE", 1),
            connect_timeout_seconds=_env_int("DB_CONNECT_TIMEOUT_SECONDS", 10),
            statement_timeout_seconds=_env_int("DB_STATEMENT_TIMEOUT_SECONDS", 60),
            output_root=_env("REPORT_OUTPUT_ROOT", str(data_dir() / "reports")) or str(data_dir() / "reports"),
            chunk_size=_env_int("REPORT_CHUNK_SIZE", 1000),
            retain_parts=_env_bool("REPORT_RETAIN_PARTS", False),
            enforce_read_only=_env_bool("REPORT_ENFORCE_READ_ONLY", True),
            max_query_retries=_env_int("REPORT_MAX_QUERY_RETRIES", 1),
            log_dir=_env("LOG_DIR", "logs") or "logs",
            log_level=(_env("LOG_LEVEL", "INFO") or "INFO").strip().upper(),
        )

    def validate(self) -> "Settings":
        """Raise ConfigError listing every problem found; return self when valid."""
        problems: list[str] = []

        if self.db_backend not in ("postgres", "sqlite"):
            problems.append(f"DB_BACKEND must be 'postgres' or 'sqlite', got '{self.db_backend}'")

        if self.db_backend == "postgres":
            if not 1 <= self.pg_port <= 65535:
                problems.append(f"PGPORT out of range: {self.pg_port}")
            for name, value in (("PGDATABASE", self.pg_database), ("PGUSER", self.pg_user), ("PGPASSWORD", self.pg_password)):
                if not value:
                    problems.append(f"{name} environment variable is not set")

        if self.pool_min_size < 0 or self.pool_max_size < 1 or self.pool_min_size > self.pool_max_size:
            problems.append(f"Invalid pool bounds: min={self.pool_min_size} max={self.pool_max_size}")

        if self.chunk_size < 1:
            problems.append(f"REPORT_CHUNK_SIZE must be positive, got {self.chunk_size}")

        if self.max_query_retries < 0:
            problems.append(f"REPORT_MAX_QUERY_RETRIES must be >= 0, got {self.max_query_retries}")

        if not isinstance(logging.getLevelName(self.log_level), int):
            problems.append(f"Unknown LOG_LEVEL '{self.log_level}'")

        if problems:
            raise ConfigError("; ".join(problems))
        return self

    def describe(self) -> dict[str, object]:
        """Loggable view of the settings with the password masked."""
        return {
            "db_backend": self.db_backend,
            "pg_host": self.pg_host,
            "pg_port": self.pg_port,
            "pg_database": self.pg_database,
            "pg_user": self.pg_user,
            "pg_password": "*" * len(self.pg_password or ""),
            "pool": f"{self.pool_min_size}..{self.pool_max_size}",
            "output_root": self.output_root,
            "chunk_size": self.chunk_size,
            "retain_parts": self.retain_parts,
            "enforce_read_only": self.enforce_read_only,
        }
