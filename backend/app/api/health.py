"""Health check endpoint."""

import shutil
import time
from fastapi import APIRouter, Depends

from app.api.validate import get_validation_engine
from app.models.responses import HealthResponse, HealthDependency
from app.validators.engine import ValidationEngine

router = APIRouter()

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, response_model_exclude_none=True)
async def health_check(engine: ValidationEngine = Depends(get_validation_engine)):
    """Liveness check. Always healthy while the process serves requests."""
    dependencies = {}

    executable = engine.runner.command[0]
    if shutil.which(executable):
        dependencies["linter"] = HealthDependency(status="healthy")
    else:
        dependencies["linter"] = HealthDependency(
            status="unhealthy", message=f"{executable!r} not found on PATH"
        )

    if engine.config_writer.is_current():
        dependencies["lint_config"] = HealthDependency(status="healthy")
    else:
        dependencies["lint_config"] = HealthDependency(
            status="degraded", message=f"{engine.config_writer.path} not written yet"
        )

    return HealthResponse(
        uptime_seconds=round(time.time() - _start_time, 2),
        dependencies=dependencies,
    )
