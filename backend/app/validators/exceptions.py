"""Error taxonomy for the validation service.

Every error carries the HTTP status it maps to and renders the JSON body returned
to the client. Handlers in ``app.main`` do the translation at the request boundary.
"""

from typing import Optional


class LintServiceError(Exception):
    """Base for every error the request boundary knows how to answer."""

    status_code: int = 500
    error: str = "Validation failed"

    def __init__(self, message: str = "", details: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message
        self.details = details

    def to_response(self) -> dict:
        body = {"error": self.error}
        if self.details:
            body["details"] = self.details
        if self.message:
            body["message"] = self.message
        return body


class InvalidInputError(LintServiceError):
    """Missing upload or a filename the linter must not see."""

    status_code = 400

    def __init__(self, error: str):
        self.error = error
        super().__init__()


class UploadTooLargeError(InvalidInputError):
    status_code = 413

    def __init__(self, limit: int):
        super().__init__(f"File too large. Maximum upload size is {limit} bytes")
        self.limit = limit


class LintTimeoutError(LintServiceError):
    status_code = 408
    error = "Validation timed out"

    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout


class RunnerFailureError(LintServiceError):
    """Linter exited unsuccessfully without reporting anything finding-shaped."""

    status_code = 500
    error = "Validation failed"

    def __init__(self, message: str):
        super().__init__(message, details="An unexpected error occurred during validation")


class ConfigurationError(LintServiceError):
    status_code = 500
    error = "Configuration failed"

    def __init__(self, message: str):
        super().__init__(message, details="Could not write the linter rule configuration")
