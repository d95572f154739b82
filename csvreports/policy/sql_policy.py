"""csvreports.policy.sql_policy

Read-only SQL validation.

This is intentionally conservative and keyword based; it does not parse SQL.
Values are bound out-of-band, so string literals rarely reach this check.
"""

from __future__ import annotations
import re
from typing import List

from csvreports.errors import UnsafeSQLError


_DENY_KEYWORDS = [
    "insert", "update", "delete", "merge",
    "drop", "alter", "create", "truncate",
    "grant", "revoke", "execute", "exec",
    "copy", "vacuum", "reindex", "cluster",
    "call", "do", "lock", "listen", "notify",
]

_DENY_PATTERN = re.compile(r"\b(" + "|".join(re.escape(k) for k in _DENY_KEYWORDS) + r")\b", re.IGNORECASE)

_QUOTED = re.compile(r"\"[^\"]*\"|'(?:[^']|'')*'")

_LEADING_KEYWORD = re.compile(r"^\s*\(*\s*([a-z]+)", re.IGNORECASE)


class SqlPolicy:
    """Validates and enforces read-only SQL policy."""

    allowed_leading = ("select", "with")

    def validate(self, sql: str) -> List[str]:
        """Return a list of violations; empty means 'looks safe'."""
        s = (sql or "").strip()
        violations: List[str] = []

        if not s:
            return ["Empty SQL"]

        # Quoted identifiers and literals may legitimately contain keywords
        bare = _QUOTED.sub(" ", s)

        # Block multiple statements (allow a trailing semicolon only)
        if ";" in bare.rstrip().rstrip(";"):
            violations.append("Multiple statements are not allowed")

        if "--" in bare or "/*" in bare or "*/" in bare:
            violations.append("SQL comments are not allowed")

        m = _LEADING_KEYWORD.match(bare)
        if not m or m.group(1).lower() not in self.allowed_leading:
            violations.append("Only SELECT queries are allowed")

        if _DENY_PATTERN.search(bare):
            violations.append("DDL/DML or unsafe keyword detected")

        return violations

    def enforce(self, sql: str) -> None:
        violations = self.validate(sql)
        if violations:
            raise UnsafeSQLError("; ".join(violations))
