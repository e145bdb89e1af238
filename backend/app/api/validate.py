"""Validation API — upload a diagram, get the linter's findings back."""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

import structlog

from app.models.responses import ErrorResponse, RawValidationResponse, ValidationResponse
from app.services.rate_limiter import rate_limiter
from app.validators.engine import ValidationEngine
from app.validators.models import ValidationResult

logger = structlog.get_logger()

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing file or wrong extension"},
    408: {"model": ErrorResponse, "description": "Linter exceeded its time budget"},
    413: {"model": ErrorResponse, "description": "Upload too large"},
    500: {"model": ErrorResponse, "description": "Linter or configuration failure"},
}


def get_validation_engine(request: Request) -> ValidationEngine:
    return request.app.state.validation_engine


def _check_rate_limit(request: Request) -> None:
    client_ip = request.client.host if request.client else "unknown"
    if not rate_limiter.allow_request(client_ip):
        raise HTTPException(
            status_code=429,
            detail={
                "error": "Rate limit exceeded",
                "message": f"Maximum {rate_limiter.max_tokens} validations per "
                f"{rate_limiter.refill_seconds} seconds. Try again later.",
                "retry_after_seconds": round(rate_limiter.reset_time(client_ip), 1),
            },
        )


async def _validate(request: Request, file: Optional[UploadFile], engine: ValidationEngine) -> ValidationResult:
    _check_rate_limit(request)
    filename = file.filename if file is not None else None
    try:
        return await engine.validate_upload(filename, file)
    finally:
        if file is not None:
            await file.close()


@router.post(
    "/validate",
    response_model=ValidationResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def validate_diagram(
    request: Request,
    file: Optional[UploadFile] = File(None),
    engine: ValidationEngine = Depends(get_validation_engine),
):
    """Lint an uploaded ``.bpmn`` file and return structured findings."""
    result = await _validate(request, file, engine)
    return ValidationResponse.from_result(result)


@router.post(
    "/validate/raw",
    response_model=RawValidationResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def validate_diagram_raw(
    request: Request,
    file: Optional[UploadFile] = File(None),
    engine: ValidationEngine = Depends(get_validation_engine),
):
    """Lint an uploaded ``.bpmn`` file and return the linter's raw output streams."""
    result = await _validate(request, file, engine)
    return RawValidationResponse.from_result(result)
