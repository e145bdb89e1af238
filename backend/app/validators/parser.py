"""Line-oriented parser for linter output.

The linter prints one finding per line, whitespace separated:

    Task_1  error  Missing condition expression  conditional-flows

followed by a summary such as ``2 problems (1 error, 1 warning)``. Matching is a
plain case-sensitive substring test, so any line mentioning ``error`` or
``warning`` is treated as a finding.
"""

from typing import Optional

from app.validators.models import LintFinding

FINDING_TOKENS = ("error", "warning")
SUMMARY_TOKEN = "problems"


def output_lines(stdout: str) -> list[str]:
    """Split output into trimmed, non-empty lines."""
    return [line.strip() for line in stdout.splitlines() if line.strip()]


def is_finding_line(line: str) -> bool:
    return any(token in line for token in FINDING_TOKENS)


def has_findings(stdout: str) -> bool:
    """True if any output line looks like a finding."""
    return any(is_finding_line(line) for line in output_lines(stdout))


def parse_finding(line: str) -> LintFinding:
    """Parse one candidate line into a finding.

    Lines with fewer than four tokens still produce a record; fields that cannot be
    located are left empty rather than failing the whole report.
    """
    tokens = line.split()
    if not tokens:
        return LintFinding(element="")

    return LintFinding(
        element=tokens[0],
        type=tokens[1] if len(tokens) > 1 else None,
        message=" ".join(tokens[2:-1]),
        rule=tokens[-1] if len(tokens) > 2 else None,
    )


def parse_findings(stdout: str) -> list[LintFinding]:
    """Parse every finding line in emission order."""
    return [parse_finding(line) for line in output_lines(stdout) if is_finding_line(line)]


def extract_summary(stdout: str) -> Optional[str]:
    """Return the first line mentioning ``problems``, verbatim, if any."""
    for line in output_lines(stdout):
        if SUMMARY_TOKEN in line:
            return line
    return None
