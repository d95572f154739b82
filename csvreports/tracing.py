"""csvreports.tracing

Trace of a single report request.

The coordinator records one "transition" entry per state change, stamped
with the milliseconds elapsed since the request started; other steps (error
triage) use `add`. Callers inspect the path a request took after it reaches
DONE or FAILED.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import time
from typing import Any


@dataclass
class TraceCollector:
    traces: list[dict[str, Any]] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)

    def _elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)

    def add(self, step_name: str, payload: dict[str, Any]) -> None:
        self.traces.append({"step": step_name, "payload": payload, "elapsed_ms": self._elapsed_ms()})

    def transition(self, from_state: str, to_state: str, **detail: Any) -> None:
        self.add("transition", {"from": from_state, "to": to_state, **detail})

    def steps(self) -> list[str]:
        return [t["step"] for t in self.traces]

    def states(self) -> list[str]:
        """Target states in the order they were entered."""
        return [t["payload"]["to"] for t in self.traces if t["step"] == "transition"]
