"""csvreports.env_loader

Loads the store and report settings from a .env file using python-dotenv.

Lookup order:
1. an explicit `dotenv_path` argument
2. the file named by CSVREPORTS_ENV_FILE
3. the nearest .env walking up from the current directory
4. the .env at the project root (so scripts/ can be run from anywhere)

Variables already present in the environment win unless `override=True`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from csvreports.paths import project_root

ENV_FILE_VAR = "CSVREPORTS_ENV_FILE"


def _find_dotenv(start: Path, max_levels: int = 6) -> Optional[Path]:
    cur = start.resolve()
    for _ in range(max_levels + 1):
        candidate = cur / ".env"
        if candidate.is_file():
            return candidate
        if cur.parent == cur:
            break
        cur = cur.parent
    return None


def resolve_env_file(dotenv_path: str | None = None, start: Path | None = None) -> Optional[Path]:
    """Return the .env file `load_env` would use, or None."""
    explicit = dotenv_path or os.getenv(ENV_FILE_VAR)
    if explicit:
        path = Path(explicit).expanduser()
        return path if path.is_file() else None

    found = _find_dotenv(start or Path.cwd())
    if found:
        return found
    fallback = project_root() / ".env"
    return fallback if fallback.is_file() else None


def load_env(dotenv_path: str | None = None, override: bool = False) -> str | None:
    """Load env vars from .env; returns the path used, or None if nothing was loaded."""
    path = resolve_env_file(dotenv_path)
    if path is None:
        return None
    load_dotenv(dotenv_path=str(path), override=override)
    return str(path)
