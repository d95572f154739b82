"""scripts.report_cli

Command line access to the report service.

Usage:
  python scripts/report_cli.py ping
  python scripts/report_cli.py schemas
  python scripts/report_cli.py tables --schema public
  python scripts/report_cli.py tables --all-schemas
  python scripts/report_cli.py describe --schema public [--table orders]
  python scripts/report_cli.py query "SELECT * FROM orders WHERE id > %s" --values "[10]"
  python scripts/report_cli.py report "SELECT * FROM orders" --name orders --out monthly
"""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict

import pandas as pd

from csvreports.contracts.outcome import Err
from csvreports.errors import ConfigError
from csvreports.main import build_service


def _values(raw: str) -> list:
    values = json.loads(raw)
    if not isinstance(values, list):
        raise argparse.ArgumentTypeError("--values must be a JSON array")
    return values


def _print_json(obj) -> None:
    print(json.dumps(obj, indent=2, default=str))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Generate CSV reports from parameterized queries")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("ping")
    sub.add_parser("schemas")

    p = sub.add_parser("tables")
    p.add_argument("--schema", default="public")
    p.add_argument("--all-schemas", action="store_true", help="List base tables of every schema")

    p = sub.add_parser("describe")
    p.add_argument("--schema", default="public")
    p.add_argument("--table")

    p = sub.add_parser("query")
    p.add_argument("statement")
    p.add_argument("--values", type=_values, default=[])
    p.add_argument("--schema", default="public")
    p.add_argument("--preview-rows", type=int, default=20)

    p = sub.add_parser("report")
    p.add_argument("statement")
    p.add_argument("--values", type=_values, default=[])
    p.add_argument("--schema", default="public")
    p.add_argument("--name", required=True, help="Base name of the CSV file")
    p.add_argument("--out", default=None, help="Directory under REPORT_OUTPUT_ROOT")
    p.add_argument("--verify-schema", action="store_true")
    return ap


def run(args: argparse.Namespace) -> int:
    with build_service() as service:
        if args.command == "ping":
            res = service.ping()
        elif args.command == "schemas":
            res = service.list_schemas()
        elif args.command == "tables":
            res = service.list_tables(None if args.all_schemas else args.schema)
        elif args.command == "describe":
            res = service.describe_table(args.table, args.schema) if args.table else service.describe_tables(args.schema)
        elif args.command == "query":
            res = service.run_query(args.statement, args.values, schema=args.schema)
        else:
            res = service.generate_report(
                args.statement, args.values, args.name, args.out,
                schema=args.schema, verify_schema=args.verify_schema,
            )

        if isinstance(res, Err):
            print(f"Error: {res.error}")
            return 1

        value = res.value
        if args.command == "query":
            print(f"Found {value.row_count} rows")
            if value.rows:
                df = pd.DataFrame(value.rows)
                print(df.head(args.preview_rows).to_string(index=False))
        elif args.command == "report":
            if value.created:
                print(f'Created "{value.full_path}" with {value.row_count} rows')
            else:
                print("No CSV file generated because no result was found")
        elif isinstance(value, list):
            _print_json([asdict(v) if hasattr(v, "__dataclass_fields__") else v for v in value])
        elif hasattr(value, "__dataclass_fields__"):
            _print_json(asdict(value))
        else:
            print(value)
        return 0


def main() -> int:
    args = build_parser().parse_args()
    try:
        return run(args)
    except ConfigError as e:
        print(f"Configuration error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
