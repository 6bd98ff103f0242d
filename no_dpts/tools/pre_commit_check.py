# AGPL-3.0 License

"""
Pre-commit check tool - runs the checks and reports the verdict.

This tool executes the orchestrator against the staged changes and prints
the report to stdout, either as text for humans or as JSON.
"""

import json
from pathlib import Path
from typing import Literal, Optional, TextIO
import sys

from no_dpts.checks.check_result import CheckReport, Severity
from no_dpts.checks.orchestrator import CheckOrchestrator
from no_dpts.log import get_logger

MAX_DIAGNOSTIC_LINES = 10


class PreCommitCheck:
    """
    Pre-commit check tool - executes checks and reports results.
    """

    def __init__(
        self,
        repo_root: Path,
        output_format: Literal["text", "json"] = "text",
        orchestrator: Optional[CheckOrchestrator] = None,
        stream: Optional[TextIO] = None,
    ):
        """
        Initialize the pre-commit check tool.

        Args:
            repo_root: Root of the repository
            output_format: "text" or "json"
            orchestrator: Orchestrator to run (default: one for ``repo_root``)
            stream: Where the report is written (default: stdout)
        """
        self.repo_root = Path(repo_root)
        self.output_format = output_format
        self.orchestrator = orchestrator or CheckOrchestrator(self.repo_root)
        self.stream = stream or sys.stdout
        self.logger = get_logger()

    async def run(self) -> int:
        """Execute checks, print the report and return the exit code."""
        self.logger.info(f"Running pre-commit checks in {self.repo_root}")
        report = await self.orchestrator.run()

        if self.output_format == "json":
            self.stream.write(json.dumps(report.to_dict(), indent=2) + "\n")
        else:
            self.stream.write(render_report(report) + "\n")

        return report.exit_code


def render_report(report: CheckReport) -> str:
    """
    Render a check report as plain text.

    Every finding, every failed or skipped lint, the AI verdict and every
    degradation is listed, followed by the verdict.
    """
    if report.bypassed:
        return "\n".join([
            "⚡ Bypass token detected - skipping all checks",
            "   This is a one-time bypass. Future commits will be checked.",
        ])

    if report.staged_file_count == 0:
        return "No staged files to check."

    lines = [f"🛡️  no-dpts pre-commit check ({report.staged_file_count} staged file(s))", ""]

    # Secret findings, most severe first
    lines.append("🔐 Security findings:")
    if not report.findings:
        lines.append("  ✓ No secrets or sensitive data detected")
    for severity, findings in report.findings_by_severity().items():
        if not findings:
            continue
        lines.append(f"  {severity.value.upper()} ({len(findings)})")
        for finding in findings:
            lines.append(
                f"    [{finding.rule_name}] {finding.file_path}:{finding.line_number} - {finding.excerpt}"
            )
    if any(f.severity == Severity.LOW for f in report.findings):
        lines.append("  ℹ️ Low severity findings are informational")
    lines.append("")

    # Linting
    failed = [r for r in report.lint_results if r.is_failed]
    skipped = [r for r in report.lint_results if r.is_skipped]
    checked = len(report.lint_results) - len(skipped)
    lines.append(f"🔍 Linting ({checked} file(s) checked):")
    if not failed:
        lines.append("  ✓ Linting passed")
    for result in failed:
        lines.append(f"  ✗ {result.file_path} ({result.linter})")
        for diagnostic in result.diagnostics[:MAX_DIAGNOSTIC_LINES]:
            lines.append(f"      {diagnostic}")
        if len(result.diagnostics) > MAX_DIAGNOSTIC_LINES:
            lines.append(f"      ... {len(result.diagnostics) - MAX_DIAGNOSTIC_LINES} more lines")
    for result in skipped:
        lines.append(f"  ⚠ {result.file_path} skipped: {result.reason}")
    lines.append("")

    # AI review
    ai = report.ai_verdict
    if ai is None:
        lines.append("🤖 AI review: not run")
    elif ai.is_unavailable:
        lines.append(f"🤖 AI review: unavailable ({ai.reason})")
    else:
        lines.append(f"🤖 AI review: {'REJECTED' if ai.is_rejected else 'PASSED'}")
        for rationale_line in ai.rationale.splitlines():
            lines.append(f"  {rationale_line}")
    lines.append("")

    if report.degradations:
        lines.append("⚠️  Checker problems:")
        for degradation in report.degradations:
            kind = "timed out" if degradation.timed_out else "error"
            lines.append(f"  {degradation.checker} ({kind}): {degradation.reason}")
        lines.append("")

    if report.passed:
        lines.append("✅ ALL CHECKS PASSED")
    else:
        lines.append("❌ COMMIT BLOCKED: " + "; ".join(report.blocking_reasons))
        lines.append("   Fix the issues above, or run: no-dpts bypass  (emergency skip, use sparingly)")

    return "\n".join(lines)
