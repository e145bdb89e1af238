"""Validation models — findings, results, and the raw outcome of one linter run.

Findings and results are parsed from linter output once per request and discarded
after the response is written. Nothing here is persisted.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, Field


class ValidationStatus(str, Enum):
    """Overall request verdict, derived from the parsed findings."""

    SUCCESS = "success"
    VALIDATION_ISSUES = "validation_issues"


class LintFinding(BaseModel):
    """One issue reported by the linter, attributed to a diagram element and a rule."""

    element: str
    type: Optional[str] = None  # "error" | "warning" on well-formed lines
    message: str = ""
    rule: Optional[str] = None


class ValidationResult(BaseModel):
    """Normalized report for one uploaded diagram."""

    status: ValidationStatus
    problems: list[LintFinding] = Field(default_factory=list)
    summary: Optional[str] = None

    # Diagnostics; not part of the structured response
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0

    class Config:
        use_enum_values = True

    @classmethod
    def build(
        cls,
        problems: list[LintFinding],
        summary: Optional[str] = None,
        **diagnostics,
    ) -> "ValidationResult":
        """Build a result, computing the status from the findings alone."""
        status = ValidationStatus.VALIDATION_ISSUES if problems else ValidationStatus.SUCCESS
        return cls(status=status, problems=problems, summary=summary, **diagnostics)


# ── Linter outcome ──


@dataclass(frozen=True)
class Completed:
    """The linter ran to completion, whatever its exit status."""

    exit_code: int
    stdout: str
    stderr: str
    duration_ms: float = 0.0

    @property
    def exit_ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class TimedOut:
    """The linter exceeded its budget and was killed."""

    timeout: float


@dataclass(frozen=True)
class ProcessError:
    """The linter could not be started at all."""

    message: str


LintOutcome = Union[Completed, TimedOut, ProcessError]
