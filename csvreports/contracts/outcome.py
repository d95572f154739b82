"""csvreports.contracts.outcome

Tagged result type returned across component boundaries.

Components raise `AppError` subclasses internally and convert them to
`Err(ReportError)` before returning, so callers inspect the outcome instead
of catching exceptions.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar, Union

from csvreports.errors import AppError

T = TypeVar("T")

ErrorKind = Literal["ConnectivityError", "ExecutionError", "SchemaMismatchError", "IOError", "UnsafeSQLError"]
Phase = Literal["catalog", "query", "serialize", "merge"]


@dataclass(frozen=True)
class ReportError:
    kind: ErrorKind
    message: str
    phase: Phase

    @classmethod
    def from_exception(cls, exc: AppError, phase: Phase) -> "ReportError":
        return cls(kind=exc.kind, message=str(exc), phase=phase)  # type: ignore[arg-type]

    def __str__(self) -> str:
        return f"[{self.phase}] {self.kind}: {self.message}"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    error: ReportError

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Ok[T], Err]


def fail(kind: ErrorKind, message: str, phase: Phase) -> Err:
    return Err(ReportError(kind=kind, message=message, phase=phase))
