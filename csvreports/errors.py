"""csvreports.errors

Central error types to keep error handling consistent.

Every error carries a `kind` from the report error taxonomy so it can be
turned into a `ReportError` at a component boundary.
"""


class AppError(Exception):
    """Base application error."""

    kind = "AppError"


class ConfigError(AppError):
    """Raised when required configuration is missing or invalid."""

    kind = "ConfigError"


class UnsafeSQLError(AppError):
    """Raised when SQL violates read-only/safety policy."""

    kind = "UnsafeSQLError"


class ToolError(AppError):
    """Raised when an external tool call fails (DB)."""

    kind = "ToolError"


class ConnectivityError(ToolError):
    """Store unreachable, pool exhausted or authentication failure."""

    kind = "ConnectivityError"


class ExecutionError(ToolError):
    """Malformed statement, constraint violation, permission or timeout."""

    kind = "ExecutionError"


class SchemaMismatchError(AppError):
    """Part files disagree on their header line."""

    kind = "SchemaMismatchError"


class ReportIOError(AppError):
    """Write, permission or disk failure while producing report files."""

    kind = "IOError"
