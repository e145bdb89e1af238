"""Linter rule configuration — the fixed-name file the linter discovers in its working directory."""

import asyncio
import json
import os
import tempfile
from pathlib import Path

import anyio
import structlog

from app.validators.exceptions import ConfigurationError

logger = structlog.get_logger()


class LintConfigWriter:
    """Writes the static rule-set declaration with an atomic replace.

    Concurrent readers see either the previous complete file or the new one,
    never a truncated one. Content is constant, so rewrites are idempotent.
    """

    def __init__(self, path: str = ".bpmnlintrc", ruleset: str = "bpmnlint:recommended"):
        self.path = Path(path).resolve()
        self.ruleset = ruleset
        self._lock = asyncio.Lock()
        self._written = False

    @property
    def directory(self) -> Path:
        return self.path.parent

    def render(self) -> str:
        return json.dumps({"extends": self.ruleset}, indent=2)

    def is_current(self) -> bool:
        """True if the file on disk already holds exactly our content."""
        try:
            return self.path.read_text(encoding="utf-8") == self.render()
        except OSError:
            return False

    def write(self) -> None:
        """Write-fsync-rename the configuration file."""
        content = self.render()
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.directory)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            logger.error("lint_config_write_failed", path=str(self.path), error=str(e))
            raise ConfigurationError(f"Cannot write {self.path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

        self._written = True
        logger.info("lint_config_written", path=str(self.path), ruleset=self.ruleset)

    async def ensure(self) -> None:
        """Make sure the configuration is on disk before the linter is invoked.

        Cheap after the first success; re-checks the file so an external deletion
        is repaired on the next request.
        """
        if self._written and self.path.exists():
            return
        async with self._lock:
            if await anyio.to_thread.run_sync(self.is_current):
                self._written = True
                return
            await anyio.to_thread.run_sync(self.write)
