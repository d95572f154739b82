"""csvreports.paths

Helpers for resolving file system paths consistently.

Report file naming: base name `B` gives `B.csv`, or parts `B.part1.csv`,
`B.part2.csv`, ... that are merged into `B.csv`.
"""

from __future__ import annotations
from pathlib import Path

from csvreports.errors import ReportIOError


def project_root() -> Path:
    """Return the repository root folder (parent of `csvreports/`)."""
    return Path(__file__).resolve().parents[1]


def data_dir() -> Path:
    """Return the default data directory under the repo."""
    return project_root() / "data"


def resolve_output_dir(output_root: str | Path, requested: str | Path | None) -> Path:
    """Resolve `requested` against the output root and refuse anything outside it.

    Relative paths are taken relative to the root. The directory is not created here.
    """
    root = Path(output_root).expanduser().resolve()
    if requested is None or str(requested).strip() == "":
        return root

    candidate = Path(requested).expanduser()
    if not candidate.is_absolute():
        candidate = root / candidate
    candidate = candidate.resolve()

    if candidate != root and root not in candidate.parents:
        raise ReportIOError(f"Output directory '{candidate}' is outside the permitted output root '{root}'")
    return candidate


def validate_base_name(base_name: str) -> str:
    """Return the base name if it is a plain file stem."""
    name = (base_name or "").strip()
    if not name:
        raise ReportIOError("Output base name is empty")
    if "/" in name or "\\" in name or name in (".", ".."):
        raise ReportIOError(f"Output base name '{base_name}' must not contain path separators")
    if name.lower().endswith(".csv"):
        raise ReportIOError(f"Output base name '{base_name}' must not carry the .csv extension")
    return name


def final_path(output_dir: Path, base_name: str) -> Path:
    return output_dir / f"{base_name}.csv"


def part_path(output_dir: Path, base_name: str, index: int) -> Path:
    """Path of the 1-indexed part file for `base_name`."""
    return output_dir / f"{base_name}.part{index}.csv"
