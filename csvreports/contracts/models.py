"""csvreports.contracts.models

Shared models for the catalog, query runner, CSV writer and coordinator.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Sequence


@dataclass(frozen=True)
class ColumnDescriptor:
    """One introspected column."""
    name: str
    data_type: str
    nullable: bool
    is_identity: bool
    char_max_length: Optional[int] = None
    numeric_precision: Optional[int] = None
    numeric_precision_radix: Optional[int] = None


@dataclass(frozen=True)
class TableRef:
    """A base table as returned by list_tables."""
    schema: str
    name: str

    @property
    def qualified_name(self) -> str:
        return f'{self.schema}."{self.name}"'


@dataclass
class TableDescriptor:
    """A table with its columns in catalog order."""
    schema: str
    name: str
    columns: list[ColumnDescriptor] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.schema, self.name)


@dataclass
class QueryResult:
    """Rows exactly as returned by the store driver."""
    row_count: int
    rows: list[dict[str, Any]]


@dataclass
class RowFrame:
    """In-memory representation of one query result.

    `columns` is unique and in first-seen order; `rows` keeps store order.
    """
    columns: list[str]
    rows: list[dict[str, Any]]

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]], columns: Optional[Sequence[str]] = None) -> "RowFrame":
        materialized = [dict(r) for r in rows]
        if columns is not None:
            cols = list(dict.fromkeys(columns))
            for i, r in enumerate(materialized):
                extra = [k for k in r if k not in cols]
                if extra:
                    raise ValueError(f"Row {i} has columns outside the projection: {extra}")
            return cls(columns=cols, rows=materialized)

        seen: dict[str, None] = {}
        for r in materialized:
            for k in r:
                seen.setdefault(k, None)
        return cls(columns=list(seen), rows=materialized)

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class CsvPart:
    """One physical CSV file holding a slice of a RowFrame."""
    path: Path
    row_count: int
    has_header: bool = True


@dataclass(frozen=True)
class ReportArtifact:
    """Final, caller-visible output.

    `full_path` is None for an empty result (no file is created).
    """
    full_path: Optional[Path]
    row_count: int
    parts: tuple[Path, ...] = ()

    @property
    def created(self) -> bool:
        return self.full_path is not None
