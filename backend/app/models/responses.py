"""API response models."""

from pydantic import BaseModel
from typing import Optional, Literal

from app.validators.models import LintFinding, ValidationResult


class ProblemResponse(BaseModel):
    """Single finding as returned to clients."""

    element: str
    type: Optional[str] = None
    message: str = ""
    rule: Optional[str] = None


class ValidationResponse(BaseModel):
    """Structured lint report."""

    status: Literal["success", "validation_issues"]
    problems: list[ProblemResponse] = []
    summary: Optional[str] = None

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(
            status=result.status,
            problems=[_problem(p) for p in result.problems],
            summary=result.summary,
        )


class RawValidationResponse(BaseModel):
    """Legacy report: the linter's streams, unparsed."""

    message: Optional[str] = None
    errors: Optional[str] = None
    details: Optional[str] = None

    @classmethod
    def from_result(cls, result: ValidationResult) -> "RawValidationResponse":
        if not result.problems and not result.stderr:
            return cls(message="No errors found")
        return cls(errors=result.stderr, details=result.stdout)


class ErrorResponse(BaseModel):
    """Body of every non-2xx response raised by the service."""

    error: str
    details: Optional[str] = None
    message: Optional[str] = None


class HealthDependency(BaseModel):
    """Health status of a single dependency."""

    status: Literal["healthy", "unhealthy", "degraded"]
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """Liveness response. ``status`` is constant; dependencies are informational."""

    status: Literal["healthy"] = "healthy"
    version: str = "1.0.0"
    uptime_seconds: float
    dependencies: dict[str, HealthDependency] = {}


def _problem(finding: LintFinding) -> ProblemResponse:
    return ProblemResponse(**finding.model_dump())
