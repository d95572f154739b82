"""csvreports.export.part_merger

Concatenates part files into one canonical CSV without re-parsing data rows.

The header record of part 1 is written once, followed by the raw data bytes of
every part in order. All parts must carry a byte-identical header; otherwise
the merge fails with SchemaMismatchError and no destination file is left.
The merged file is assembled in a temp file next to the destination and
renamed into place on success.
"""

from __future__ import annotations
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Sequence

from csvreports.contracts.models import CsvPart, ReportArtifact
from csvreports.contracts.outcome import Err, Ok, Outcome, ReportError
from csvreports.errors import ReportIOError, SchemaMismatchError

_COPY_BUFFER = 1024 * 1024


def read_header(fh: BinaryIO) -> bytes:
    """Read one complete CSV record (including its terminator) from `fh`.

    A quoted field may contain line breaks, so keep reading lines until the
    quote characters balance.
    """
    record = fh.readline()
    while record and record.count(b'"') % 2 == 1:
        more = fh.readline()
        if not more:
            break
        record += more
    return record


def _copy_data(src: BinaryIO, dst: BinaryIO) -> None:
    last = b""
    while True:
        chunk = src.read(_COPY_BUFFER)
        if not chunk:
            break
        dst.write(chunk)
        last = chunk
    # Keep records separated if a part lacks a trailing terminator
    if last and not last.endswith(b"\n"):
        dst.write(b"\r\n")


class PartMerger:
    name = "part_merger"

    def __init__(self, logger, retain_parts: bool = False):
        self.logger = logger
        self.retain_parts = retain_parts

    def _check_headers(self, parts: Sequence[CsvPart]) -> bytes:
        expected: bytes | None = None
        for index, part in enumerate(parts, start=1):
            with open(part.path, "rb") as fh:
                header = read_header(fh)
            if expected is None:
                expected = header
            elif header != expected:
                raise SchemaMismatchError(
                    f"Header of part {index} ({part.path.name}) does not match part 1 ({parts[0].path.name})"
                )
        return expected or b""

    def merge(self, parts: Sequence[CsvPart], destination: Path) -> Outcome[ReportArtifact]:
        if not parts:
            return Err(ReportError("SchemaMismatchError", "No part files to merge", "merge"))

        try:
            header = self._check_headers(parts)
        except SchemaMismatchError as e:
            self.logger.error("PartMerger.merge | %s", e)
            return Err(ReportError.from_exception(e, "merge"))
        except OSError as e:
            self.logger.error("PartMerger.merge | %s", e)
            return Err(ReportError.from_exception(ReportIOError(str(e)), "merge"))

        tmp_name: str | None = None
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
            with os.fdopen(fd, "wb") as out:
                out.write(header)
                for part in parts:
                    with open(part.path, "rb") as src:
                        read_header(src)
                        _copy_data(src, out)
            os.replace(tmp_name, destination)
            tmp_name = None
        except OSError as e:
            self.logger.error("PartMerger.merge | %s: %s", destination, e)
            return Err(ReportError.from_exception(ReportIOError(str(e)), "merge"))
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        row_count = sum(p.row_count for p in parts)
        self.logger.info("PartMerger.merge | %s parts=%s rows=%s", destination, len(parts), row_count)

        kept: tuple[Path, ...] = tuple(p.path for p in parts)
        if not self.retain_parts:
            kept = self._delete_parts(parts)
        return Ok(ReportArtifact(full_path=destination, row_count=row_count, parts=kept))

    def _delete_parts(self, parts: Sequence[CsvPart]) -> tuple[Path, ...]:
        """Delete merged parts; return the ones that could not be removed."""
        left: list[Path] = []
        for part in parts:
            try:
                part.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                # The merged file is already complete; a stale part is only logged
                self.logger.warning("PartMerger | could not delete %s: %s", part.path, e)
                left.append(part.path)
        return tuple(left)
