"""Validation runner — invokes the external linter and normalizes what it prints.

The linter reports "findings exist" with a non-zero exit status, so a failed exit
is only fatal when the output holds nothing finding-shaped.
"""

import asyncio
import os
import signal
import time
from pathlib import Path
from typing import Optional, Sequence, Union

import structlog

from app.validators.exceptions import LintTimeoutError, RunnerFailureError
from app.validators.models import (
    Completed,
    LintOutcome,
    ProcessError,
    TimedOut,
    ValidationResult,
)
from app.validators.parser import extract_summary, has_findings, parse_findings

logger = structlog.get_logger()

STDERR_TAIL_CHARS = 1000


class LintRunner:
    """Runs the linter as a subprocess, one process per staged file."""

    def __init__(self, command: Sequence[str], workdir: Optional[Union[str, Path]] = None):
        if not command:
            raise ValueError("Linter command must not be empty")
        self.command = list(command)
        self.workdir = str(workdir) if workdir is not None else None

    async def run(self, path: Union[str, Path], timeout: float) -> ValidationResult:
        """Lint one file and return the normalized result.

        Raises:
            LintTimeoutError: the linter exceeded ``timeout`` seconds and was killed.
            RunnerFailureError: the linter could not start, or failed without findings.
        """
        outcome = await self.invoke(path, timeout)
        return self.classify(outcome)

    async def invoke(self, path: Union[str, Path], timeout: float) -> LintOutcome:
        """Execute the linter with ``path`` as its sole positional argument."""
        argv = [*self.command, str(path)]
        logger.info("lint_started", argv=argv, timeout=timeout)
        start = time.perf_counter()

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.workdir,
                start_new_session=True,
            )
        except OSError as e:
            return ProcessError(message=f"Cannot start linter {self.command[0]!r}: {e}")

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            return TimedOut(timeout=timeout)
        except BaseException:
            await self._kill(process)
            raise

        return Completed(
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )

    def classify(self, outcome: LintOutcome) -> ValidationResult:
        """Map a raw outcome onto a result, or raise the matching service error."""
        if isinstance(outcome, TimedOut):
            logger.warning("lint_timed_out", timeout=outcome.timeout)
            raise LintTimeoutError(outcome.timeout)

        if isinstance(outcome, ProcessError):
            logger.error("lint_runner_failed", error=outcome.message)
            raise RunnerFailureError(outcome.message)

        if not outcome.exit_ok and not has_findings(outcome.stdout):
            tail = outcome.stderr.strip()[-STDERR_TAIL_CHARS:]
            message = f"Linter exited with status {outcome.exit_code}"
            if tail:
                message = f"{message}: {tail}"
            logger.error("lint_runner_failed", exit_code=outcome.exit_code, stderr=tail)
            raise RunnerFailureError(message)

        result = ValidationResult.build(
            parse_findings(outcome.stdout),
            extract_summary(outcome.stdout),
            exit_code=outcome.exit_code,
            stdout=outcome.stdout,
            stderr=outcome.stderr,
            duration_ms=outcome.duration_ms,
        )
        logger.info(
            "lint_completed",
            status=result.status,
            problems=len(result.problems),
            exit_code=outcome.exit_code,
            duration_ms=outcome.duration_ms,
        )
        return result

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        """Kill the linter and its process group, then reap it.

        Launchers such as npx fork the real linter, so the whole group goes.
        The group is killed even when the launcher itself has already exited,
        since its children keep the group alive and may still hold the pipes.
        """
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except OSError:
            if process.returncode is None:
                process.kill()
        await process.wait()
