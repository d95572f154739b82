"""csvreports.agents.error_triage

Decides whether a failed query gets its single corrective retry.

Only ExecutionError is eligible. When the store reports a missing column or
relation whose name matches a mixed-case bare identifier in the statement,
the identifier is double-quoted (PostgreSQL folds unquoted names to lower
case) and the patched statement is retried. Any other execution error is
retried unchanged.
"""

from __future__ import annotations
from dataclasses import dataclass
import re
from typing import Any, Literal, Optional, Sequence

from csvreports.contracts.outcome import ReportError

TriageAction = Literal["RETRY", "RETRY_WITH_PATCH", "STOP"]

_MISSING_OBJECT = re.compile(r'(?:column|relation|table)\s+"?([\w.]+)"?\s+does not exist', re.IGNORECASE)
_QUOTED = re.compile(r"(\"[^\"]*\"|'(?:[^']|'')*')")
_WORD = re.compile(r"\b[A-Za-z_]\w*\b")


@dataclass(frozen=True)
class TriageDecision:
    action: TriageAction
    patched_statement: Optional[str] = None
    reason: str = ""


def requote_identifier(statement: str, folded_name: str) -> Optional[str]:
    """Double-quote bare identifiers that fold to `folded_name`.

    Returns the patched statement, or None when nothing qualifies.
    """
    target = folded_name.lower()
    changed = False

    def _patch(m: re.Match) -> str:
        nonlocal changed
        word = m.group(0)
        if word.lower() == target and word != word.lower():
            changed = True
            return f'"{word}"'
        return word

    pieces = _QUOTED.split(statement)
    # Odd indexes are quoted identifiers/literals and stay untouched
    for i in range(0, len(pieces), 2):
        pieces[i] = _WORD.sub(_patch, pieces[i])
    return "".join(pieces) if changed else None


class ErrorTriage:
    name = "error_triage"

    def __init__(self, tracer, logger):
        self.tracer = tracer
        self.logger = logger

    def run(self, statement: str, values: Sequence[Any], error: ReportError) -> TriageDecision:
        if error.kind != "ExecutionError":
            decision = TriageDecision("STOP", reason=f"{error.kind} is not retried")
        else:
            decision = TriageDecision("RETRY", reason="execution error, retrying once")
            m = _MISSING_OBJECT.search(error.message)
            if m:
                missing = m.group(1).split(".")[-1]
                patched = requote_identifier(statement, missing)
                if patched:
                    decision = TriageDecision("RETRY_WITH_PATCH", patched, f"quoted mixed-case identifier '{missing}'")

        self.tracer.add(self.name, {"action": decision.action, "reason": decision.reason, "error": error.message})
        self.logger.info("ErrorTriage | %s (%s)", decision.action, decision.reason)
        return decision
