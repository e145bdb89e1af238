"""Validation Engine — runs one uploaded diagram through stage → configure → lint → release.

This is the main entry point for diagram validation. The HTTP layer hands it the
client's filename and upload stream; it returns a ValidationResult or raises a
LintServiceError the request boundary translates into a response.

Usage:
    engine = ValidationEngine.from_settings(get_settings())
    result = await engine.validate_upload(upload.filename, upload)
"""

import asyncio
import time
from typing import Optional

import structlog

from app.config import Settings
from app.validators.lint_config import LintConfigWriter
from app.validators.models import ValidationResult
from app.validators.runner import LintRunner
from app.validators.staging import AsyncReadable, UploadStager

logger = structlog.get_logger()


class ValidationEngine:
    """Owns the stager, runner and config writer shared by every request.

    Requests share no mutable state besides the config file, which is rewritten
    atomically with constant content. Linter processes are admitted through a
    semaphore sized by ``max_concurrent``.
    """

    def __init__(
        self,
        stager: UploadStager,
        runner: LintRunner,
        config_writer: LintConfigWriter,
        timeout: float = 30.0,
        max_concurrent: Optional[int] = None,
    ):
        self.stager = stager
        self.runner = runner
        self.config_writer = config_writer
        self.timeout = timeout
        self._slots = asyncio.Semaphore(max_concurrent) if max_concurrent else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValidationEngine":
        config_writer = LintConfigWriter(settings.LINT_CONFIG_PATH, settings.LINT_RULESET)
        return cls(
            stager=UploadStager(
                upload_dir=settings.UPLOAD_DIR,
                suffix=settings.UPLOAD_SUFFIX,
                max_bytes=settings.MAX_UPLOAD_BYTES,
            ),
            runner=LintRunner(settings.LINTER_COMMAND, workdir=config_writer.directory),
            config_writer=config_writer,
            timeout=settings.LINT_TIMEOUT_SECONDS,
            max_concurrent=settings.MAX_CONCURRENT_VALIDATIONS,
        )

    def initialize(self) -> None:
        """Startup hook: write the rule configuration once, ahead of any request."""
        self.config_writer.write()

    async def validate_upload(self, filename: Optional[str], source: AsyncReadable) -> ValidationResult:
        """Validate one upload. The staged file never outlives this call."""
        start_time = time.perf_counter()

        async with self.stager.staged(filename, source) as upload:
            await self.config_writer.ensure()
            result = await self._run(upload.path)

        logger.info(
            "validation_complete",
            filename=filename,
            status=result.status,
            problems=len(result.problems),
            size=upload.size,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return result

    async def _run(self, path) -> ValidationResult:
        if self._slots is None:
            return await self.runner.run(path, self.timeout)
        async with self._slots:
            return await self.runner.run(path, self.timeout)
