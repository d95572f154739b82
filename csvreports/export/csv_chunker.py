"""csvreports.export.csv_chunker

Serializes a RowFrame to CSV, splitting into fixed-size parts when needed.

File format:
- UTF-8, CRLF line endings, header row first
- every non-null field quoted, embedded quotes doubled
- None is written as an unquoted empty field, "" as a quoted empty field
  (csv.QUOTE_NOTNULL), so readers can tell null from empty string
- date/time values as ISO-8601

Rows <= chunk_size: `<base>.csv`. Otherwise `<base>.part1.csv` .. `<base>.partN.csv`,
each holding at most chunk_size rows plus the header.
"""

from __future__ import annotations
import csv
import json
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Iterable, Sequence

from csvreports.contracts.models import CsvPart, RowFrame
from csvreports.contracts.outcome import Err, Ok, Outcome, ReportError
from csvreports.errors import ReportIOError
from csvreports.paths import final_path, part_path

CHUNK_SIZE = 1000
LINE_TERMINATOR = "\r\n"


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def format_value(value: Any) -> str | None:
    """Convert one driver value to its CSV text; None stays None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "\\x" + bytes(value).hex()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=_json_default, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def write_csv(path: Path, columns: Sequence[str], rows: Iterable[dict[str, Any]]) -> int:
    """Write header + rows to `path`; return the number of data rows written."""
    count = 0
    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_NOTNULL, lineterminator=LINE_TERMINATOR)
        writer.writerow(columns)
        for row in rows:
            writer.writerow([format_value(row.get(c)) for c in columns])
            count += 1
    return count


class CsvChunker:
    name = "csv_chunker"

    def __init__(self, logger, chunk_size: int = CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.logger = logger
        self.chunk_size = chunk_size

    def needs_chunking(self, frame: RowFrame) -> bool:
        return frame.row_count > self.chunk_size

    def write_single(self, frame: RowFrame, base_name: str, output_dir: Path) -> Outcome[CsvPart]:
        path = final_path(output_dir, base_name)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            written = write_csv(path, frame.columns, frame.rows)
        except OSError as e:
            self.logger.error("CsvChunker.write_single | %s: %s", path, e)
            return Err(ReportError.from_exception(ReportIOError(str(e)), "serialize"))

        self.logger.info("CsvChunker.write_single | %s rows=%s", path, written)
        return Ok(CsvPart(path=path, row_count=written))

    def write_parts(self, frame: RowFrame, base_name: str, output_dir: Path) -> Outcome[list[CsvPart]]:
        parts: list[CsvPart] = []
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            for index, start in enumerate(range(0, frame.row_count, self.chunk_size), start=1):
                path = part_path(output_dir, base_name, index)
                written = write_csv(path, frame.columns, frame.rows[start:start + self.chunk_size])
                parts.append(CsvPart(path=path, row_count=written))
                self.logger.info("CsvChunker.write_parts | %s rows=%s", path, written)
        except OSError as e:
            self.logger.error("CsvChunker.write_parts | part %s: %s", len(parts) + 1, e)
            return Err(ReportError.from_exception(ReportIOError(str(e)), "serialize"))

        total = sum(p.row_count for p in parts)
        if total != frame.row_count:
            return Err(ReportError("IOError", f"Wrote {total} rows but frame holds {frame.row_count}", "serialize"))
        return Ok(parts)
