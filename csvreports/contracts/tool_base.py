"""csvreports.contracts.tool_base

Tool interfaces for external systems.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence


class DatabaseTool(ABC):
    """Executes one parameterized statement against the relational store.

    Implementations raise ConnectivityError or ExecutionError with the
    driver's message verbatim.
    """

    backend: str

    @abstractmethod
    def execute(self, sql: str, values: Sequence[Any] = (), schema: Optional[str] = None) -> list[dict[str, Any]]:
        raise NotImplementedError

    def ping(self) -> None:
        self.execute("SELECT 1")

    def close(self) -> None:
        """Release pooled resources; no-op by default."""
