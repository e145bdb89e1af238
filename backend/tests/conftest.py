"""Shared fixtures: a scriptable stand-in for bpmnlint and engines wired to it."""

import asyncio
import json
import sys
import textwrap
import time
from dataclasses import dataclass
from pathlib import Path

import pytest

from app.services.rate_limiter import rate_limiter
from app.validators.engine import ValidationEngine
from app.validators.lint_config import LintConfigWriter
from app.validators.runner import LintRunner
from app.validators.staging import UploadStager

SAMPLE_BPMN = b"""<?xml version="1.0" encoding="UTF-8"?>
<bpmn:definitions xmlns:bpmn="http://www.omg.org/spec/BPMN/20100524/MODEL" id="Definitions_1">
  <bpmn:process id="Process_1" isExecutable="false">
    <bpmn:task id="Task_1" />
  </bpmn:process>
</bpmn:definitions>
"""

LINTER_TEMPLATE = """\
import json, os, sys, time

with open({record!r}, "a") as handle:
    handle.write(json.dumps({{"argv": sys.argv[1:], "cwd": os.getcwd(), "pid": os.getpid()}}) + "\\n")

time.sleep({sleep!r})
sys.stdout.write({stdout!r})
sys.stderr.write({stderr!r})
sys.exit({exit_code!r})
"""


class BytesSource:
    """Minimal async reader over an in-memory payload."""

    def __init__(self, data: bytes):
        self._data = data
        self._offset = 0

    async def read(self, size: int = -1) -> bytes:
        if size < 0:
            size = len(self._data) - self._offset
        chunk = self._data[self._offset:self._offset + size]
        self._offset += len(chunk)
        return chunk


async def max_loop_stall(awaitable, tick: float = 0.02) -> float:
    """Await ``awaitable`` while measuring the longest gap between event loop ticks."""
    gaps = []
    done = asyncio.Event()

    async def ticker():
        last = time.monotonic()
        while not done.is_set():
            await asyncio.sleep(tick)
            now = time.monotonic()
            gaps.append(now - last - tick)
            last = now

    task = asyncio.create_task(ticker())
    await asyncio.sleep(0)
    try:
        await awaitable
    finally:
        done.set()
        await task
    return max(gaps, default=0.0)


@dataclass
class FakeLinter:
    """A Python script standing in for the real linter executable."""

    command: list[str]
    record: Path

    def calls(self) -> list[dict]:
        if not self.record.exists():
            return []
        return [json.loads(line) for line in self.record.read_text().splitlines()]


@pytest.fixture
def make_linter(tmp_path):
    """Build a fake linter printing fixed output and exiting with a fixed status."""
    counter = {"n": 0}

    def _make(stdout: str = "", stderr: str = "", exit_code: int = 0, sleep: float = 0.0) -> FakeLinter:
        counter["n"] += 1
        script = tmp_path / f"fake_linter_{counter['n']}.py"
        record = tmp_path / f"fake_linter_{counter['n']}.calls"
        script.write_text(textwrap.dedent(LINTER_TEMPLATE.format(
            record=str(record),
            sleep=sleep,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
        )))
        return FakeLinter(command=[sys.executable, str(script)], record=record)

    return _make


@pytest.fixture
def upload_dir(tmp_path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def config_path(tmp_path) -> Path:
    return tmp_path / "workdir" / ".bpmnlintrc"


@pytest.fixture
def make_engine(upload_dir, config_path):
    """Wire a ValidationEngine to a fake linter and per-test scratch directories."""

    def _make(linter: FakeLinter, timeout: float = 10.0, max_bytes=None, config=None) -> ValidationEngine:
        writer = config or LintConfigWriter(str(config_path))
        return ValidationEngine(
            stager=UploadStager(upload_dir=str(upload_dir), max_bytes=max_bytes),
            runner=LintRunner(linter.command, workdir=writer.directory),
            config_writer=writer,
            timeout=timeout,
            max_concurrent=2,
        )

    return _make


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()
