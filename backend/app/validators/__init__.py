"""Diagram validation — stage an upload, run bpmnlint on it, normalize the report.

Usage:
    from app.validators import ValidationEngine

    engine = ValidationEngine.from_settings(get_settings())
    result = await engine.validate_upload(filename, upload)
"""

from app.validators.engine import ValidationEngine
from app.validators.exceptions import (
    ConfigurationError,
    InvalidInputError,
    LintServiceError,
    LintTimeoutError,
    RunnerFailureError,
    UploadTooLargeError,
)
from app.validators.models import LintFinding, ValidationResult, ValidationStatus

__all__ = [
    "ValidationEngine",
    "ValidationResult",
    "ValidationStatus",
    "LintFinding",
    "LintServiceError",
    "InvalidInputError",
    "UploadTooLargeError",
    "LintTimeoutError",
    "RunnerFailureError",
    "ConfigurationError",
]
