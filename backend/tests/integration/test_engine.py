"""Integration tests for the validation engine against a fake linter."""

import asyncio
from pathlib import Path

import pytest

from app.validators.exceptions import (
    ConfigurationError,
    InvalidInputError,
    LintTimeoutError,
    RunnerFailureError,
)
from app.validators.lint_config import LintConfigWriter
from tests.conftest import SAMPLE_BPMN, BytesSource

SPEC_STDOUT = "Task_1 error Missing condition expression rule-name\n2 problems"


class TestValidationEngine:
    """End-to-end runs: stage → configure → lint → release."""

    @pytest.mark.asyncio
    async def test_findings_report(self, make_linter, make_engine, upload_dir, config_path):
        linter = make_linter(stdout=SPEC_STDOUT, exit_code=1)
        engine = make_engine(linter)

        result = await engine.validate_upload("process.bpmn", BytesSource(b"<not xml"))

        assert result.status == "validation_issues"
        assert [p.model_dump() for p in result.problems] == [{
            "element": "Task_1",
            "type": "error",
            "message": "Missing condition expression",
            "rule": "rule-name",
        }]
        assert result.summary == "2 problems"
        assert config_path.exists()
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_clean_report(self, make_linter, make_engine, upload_dir):
        engine = make_engine(make_linter(stdout="", exit_code=0))

        result = await engine.validate_upload("process.bpmn", BytesSource(SAMPLE_BPMN))

        assert result.status == "success"
        assert result.problems == []
        assert result.summary is None
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_linter_sees_staged_file_in_config_directory(self, make_linter, make_engine, config_path):
        linter = make_linter()
        engine = make_engine(linter)

        await engine.validate_upload("process.bpmn", BytesSource(SAMPLE_BPMN))

        (call,) = linter.calls()
        assert call["argv"][0].endswith(".bpmn")
        assert call["cwd"] == str(config_path.parent.resolve())

    @pytest.mark.asyncio
    async def test_same_content_twice_is_idempotent(self, make_linter, make_engine):
        stdout = "A warning first rule-a\nB error second one rule-b\n2 problems\n"
        engine = make_engine(make_linter(stdout=stdout, exit_code=1))

        first = await engine.validate_upload("process.bpmn", BytesSource(SAMPLE_BPMN))
        second = await engine.validate_upload("process.bpmn", BytesSource(SAMPLE_BPMN))

        assert first.status == second.status
        assert first.problems == second.problems

    @pytest.mark.asyncio
    async def test_invalid_extension_never_runs_linter(self, make_linter, make_engine, upload_dir):
        linter = make_linter()
        engine = make_engine(linter)

        with pytest.raises(InvalidInputError):
            await engine.validate_upload("process.xml", BytesSource(SAMPLE_BPMN))

        assert linter.calls() == []
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_timeout_releases_upload(self, make_linter, make_engine, upload_dir):
        engine = make_engine(make_linter(sleep=30), timeout=1.0)

        with pytest.raises(LintTimeoutError):
            await engine.validate_upload("process.bpmn", BytesSource(SAMPLE_BPMN))

        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_runner_failure_releases_upload(self, make_linter, make_engine, upload_dir):
        engine = make_engine(make_linter(stderr="Error: Cannot find module 'bpmnlint'", exit_code=1))

        with pytest.raises(RunnerFailureError):
            await engine.validate_upload("process.bpmn", BytesSource(SAMPLE_BPMN))

        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("linter_kwargs, timeout, expected", [
        ({"stderr": "Error: Cannot find module 'bpmnlint'", "exit_code": 1}, 10.0, RunnerFailureError),
        ({"sleep": 30}, 1.0, LintTimeoutError),
    ])
    async def test_release_failure_keeps_primary_error(
        self, make_linter, make_engine, upload_dir, monkeypatch, linter_kwargs, timeout, expected
    ):
        engine = make_engine(make_linter(**linter_kwargs), timeout=timeout)

        def refuse(self, missing_ok=False):
            raise PermissionError("read-only filesystem")

        monkeypatch.setattr(Path, "unlink", refuse)

        with pytest.raises(expected):
            await engine.validate_upload("process.bpmn", BytesSource(SAMPLE_BPMN))

        assert len(list(upload_dir.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_configuration_failure_stops_before_linter(self, make_linter, make_engine, upload_dir, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        linter = make_linter()
        engine = make_engine(linter, config=LintConfigWriter(str(blocker / ".bpmnlintrc")))

        with pytest.raises(ConfigurationError):
            await engine.validate_upload("process.bpmn", BytesSource(SAMPLE_BPMN))

        assert linter.calls() == []
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_concurrent_requests_leak_nothing(self, make_linter, make_engine, upload_dir):
        linter = make_linter(stdout=SPEC_STDOUT, exit_code=1)
        engine = make_engine(linter)

        results = await asyncio.gather(*[
            engine.validate_upload("process.bpmn", BytesSource(SAMPLE_BPMN))
            for _ in range(6)
        ])

        assert {r.status for r in results} == {"validation_issues"}
        assert len(linter.calls()) == 6
        assert len({call["argv"][0] for call in linter.calls()}) == 6
        assert list(upload_dir.iterdir()) == []
