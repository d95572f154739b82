"""csvreports.logging_utils

Logging utilities:
- Rotating file log under LOG_DIR for operational debugging
- Console mirror of the same records
"""

from __future__ import annotations
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path


def build_logger(log_dir: str, name: str = "csvreports", level: str = "INFO") -> logging.Logger:
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    # Avoid duplicate handlers when the service is built more than once per process
    if logger.handlers:
        return logger

    log_path = Path(log_dir) / "csvreports.log"
    handler = RotatingFileHandler(str(log_path), maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(fmt)
    logger.addHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    logger.addHandler(console)
    return logger
