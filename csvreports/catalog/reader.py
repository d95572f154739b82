"""csvreports.catalog.reader

Schema/table/column introspection against PostgreSQL's information_schema.

Every public method returns an Outcome; store failures come back as an
`Err` in the `catalog` phase and are never raised to the caller.
"""

from __future__ import annotations
from typing import Any, Optional

from csvreports.contracts.models import ColumnDescriptor, TableDescriptor, TableRef
from csvreports.contracts.outcome import Err, Ok, Outcome, ReportError, fail
from csvreports.contracts.tool_base import DatabaseTool
from csvreports.errors import ToolError

DEFAULT_SCHEMA = "public"

_LIST_SCHEMAS_SQL = (
    'SELECT "schema_name" FROM information_schema."schemata"'
    ' WHERE "schema_name" NOT LIKE %s AND "schema_name" <> %s'
)

# Internal schemas are excluded by name prefix
_SYSTEM_SCHEMA_PATTERN = "pg\\_%"
_INFORMATION_SCHEMA = "information_schema"

_LIST_TABLES_SQL = (
    'SELECT "table_schema", "table_name" FROM information_schema."tables"'
    " WHERE \"table_type\" = 'BASE TABLE'"
)
_SCHEMA_FILTER = ' AND "table_schema" = %s'

_COLUMN_FIELDS = (
    '"column_name", "data_type",'
    " CASE \"is_identity\" WHEN 'NO' THEN false ELSE true END AS \"is_identity\","
    " CASE \"is_nullable\" WHEN 'NO' THEN false ELSE true END AS \"nullable\","
    ' "character_maximum_length", "numeric_precision", "numeric_precision_radix"'
)

_DESCRIBE_TABLE_SQL = (
    f"SELECT {_COLUMN_FIELDS} FROM information_schema.\"columns\""
    ' WHERE "table_name" = %s AND "table_schema" = %s'
    ' ORDER BY "ordinal_position"'
)

_DESCRIBE_TABLES_SQL = (
    f'SELECT "table_schema", "table_name", {_COLUMN_FIELDS} FROM information_schema."columns"'
    ' WHERE "table_schema" = %s'
    ' ORDER BY "table_schema", "table_name", "ordinal_position"'
)


def _column(row: dict[str, Any]) -> ColumnDescriptor:
    return ColumnDescriptor(
        name=row["column_name"],
        data_type=row["data_type"],
        nullable=bool(row["nullable"]),
        is_identity=bool(row["is_identity"]),
        char_max_length=row.get("character_maximum_length"),
        numeric_precision=row.get("numeric_precision"),
        numeric_precision_radix=row.get("numeric_precision_radix"),
    )


class CatalogReader:
    """Normalizes information_schema rows into descriptors."""

    def __init__(self, db_tool: DatabaseTool, logger):
        self.db = db_tool
        self.logger = logger

    def _query(self, sql: str, values: list[Any]) -> Outcome[list[dict[str, Any]]]:
        try:
            return Ok(self.db.execute(sql, values))
        except ToolError as e:
            self.logger.error("CatalogReader | %s: %s", e.kind, e)
            return Err(ReportError.from_exception(e, "catalog"))

    def list_schemas(self) -> Outcome[list[str]]:
        res = self._query(_LIST_SCHEMAS_SQL, [_SYSTEM_SCHEMA_PATTERN, _INFORMATION_SCHEMA])
        if isinstance(res, Err):
            return res
        schemas = list(dict.fromkeys(r["schema_name"] for r in res.value))
        self.logger.info("CatalogReader.list_schemas | found=%s", len(schemas))
        return Ok(schemas)

    def list_tables(self, schema: Optional[str] = DEFAULT_SCHEMA) -> Outcome[list[TableRef]]:
        """Base tables of `schema`, or of every schema when `schema` is None."""
        if schema is None:
            res = self._query(_LIST_TABLES_SQL + ' ORDER BY "table_schema", "table_name"', [])
        else:
            res = self._query(_LIST_TABLES_SQL + _SCHEMA_FILTER + ' ORDER BY "table_name"', [schema])
        if isinstance(res, Err):
            return res
        tables = [TableRef(schema=r["table_schema"], name=r["table_name"]) for r in res.value]
        self.logger.info("CatalogReader.list_tables | schema=%s found=%s", schema or "*", len(tables))
        return Ok(tables)

    def describe_table(self, schema: str, table: str) -> Outcome[TableDescriptor]:
        res = self._query(_DESCRIBE_TABLE_SQL, [table, schema])
        if isinstance(res, Err):
            return res
        if not res.value:
            return fail("ExecutionError", f"Table '{schema}.{table}' not found in database", "catalog")
        return Ok(TableDescriptor(schema=schema, name=table, columns=[_column(r) for r in res.value]))

    def describe_tables(self, schema: str = DEFAULT_SCHEMA) -> Outcome[list[TableDescriptor]]:
        res = self._query(_DESCRIBE_TABLES_SQL, [schema])
        if isinstance(res, Err):
            return res

        # Keyed on (schema, table); insertion order follows the catalog rows
        tables: dict[tuple[str, str], TableDescriptor] = {}
        for r in res.value:
            key = (r["table_schema"], r["table_name"])
            desc = tables.get(key)
            if desc is None:
                desc = tables[key] = TableDescriptor(schema=key[0], name=key[1])
            desc.columns.append(_column(r))

        self.logger.info("CatalogReader.describe_tables | schema=%s tables=%s", schema, len(tables))
        return Ok(list(tables.values()))

    def has_schema(self, schema: str) -> Outcome[bool]:
        res = self.list_schemas()
        if isinstance(res, Err):
            return res
        return Ok(schema in res.value)
