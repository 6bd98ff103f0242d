# AGPL-3.0 License

"""
Check result data structures.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def blocks_by_default(self) -> bool:
        return self is not Severity.LOW


class Verdict(str, Enum):
    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class Finding:
    """
    One secret-pattern match.

    ``excerpt`` is already redacted; the full matched credential is never
    stored, so a Finding is safe to print or log.
    """
    rule_name: str
    severity: Severity
    file_path: str
    line_number: int
    excerpt: str

    def to_dict(self) -> dict:
        return {
            "rule_name": self.rule_name,
            "severity": self.severity.value,
            "file_path": self.file_path,
            "line_number": self.line_number,
            "excerpt": self.excerpt,
        }


SKIP_NO_LINTER = "no linter for language"
SKIP_NOT_INSTALLED = "linter not installed"
SKIP_TIMED_OUT = "linter timed out"


@dataclass(frozen=True)
class LintResult:
    """
    Outcome of linting one staged file.

    Attributes:
        outcome: "passed", "failed" (diagnostics set) or "skipped" (reason set)
        diagnostics: linter output lines, only for failed results
        reason: why the linter did not run, only for skipped results
    """
    file_path: str
    linter: str
    outcome: Literal["passed", "failed", "skipped"]
    diagnostics: tuple[str, ...] = ()
    reason: Optional[str] = None

    @classmethod
    def passed(cls, file_path: str, linter: str) -> "LintResult":
        return cls(file_path=file_path, linter=linter, outcome="passed")

    @classmethod
    def failed(cls, file_path: str, linter: str, diagnostics: list[str]) -> "LintResult":
        return cls(file_path=file_path, linter=linter, outcome="failed", diagnostics=tuple(diagnostics))

    @classmethod
    def skipped(cls, file_path: str, linter: str, reason: str) -> "LintResult":
        return cls(file_path=file_path, linter=linter, outcome="skipped", reason=reason)

    @property
    def is_failed(self) -> bool:
        return self.outcome == "failed"

    @property
    def is_skipped(self) -> bool:
        return self.outcome == "skipped"

    def to_dict(self) -> dict:
        return {
            "file_path": self.file_path,
            "linter": self.linter,
            "outcome": self.outcome,
            "diagnostics": list(self.diagnostics),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class AiVerdict:
    """
    Outcome of the AI review of the whole staged diff.

    ``unavailable`` means the review could not be obtained or understood;
    it is a degradation, never an implicit approval.
    """
    outcome: Literal["approved", "rejected", "unavailable"]
    rationale: str = ""
    reason: Optional[str] = None

    @classmethod
    def approved(cls, rationale: str = "") -> "AiVerdict":
        return cls(outcome="approved", rationale=rationale)

    @classmethod
    def rejected(cls, rationale: str) -> "AiVerdict":
        return cls(outcome="rejected", rationale=rationale)

    @classmethod
    def unavailable(cls, reason: str) -> "AiVerdict":
        return cls(outcome="unavailable", reason=reason)

    @property
    def is_rejected(self) -> bool:
        return self.outcome == "rejected"

    @property
    def is_unavailable(self) -> bool:
        return self.outcome == "unavailable"

    def to_dict(self) -> dict:
        return {"outcome": self.outcome, "rationale": self.rationale, "reason": self.reason}


@dataclass(frozen=True)
class CheckerDegradation:
    """A checker that could not produce a meaningful result."""
    checker: str
    reason: str
    timed_out: bool = False

    def to_dict(self) -> dict:
        return {"checker": self.checker, "reason": self.reason, "timed_out": self.timed_out}


@dataclass
class CheckReport:
    """
    Aggregate result of one check run.

    Attributes:
        findings: secret findings in file, line, rule order
        lint_results: one entry per linted file, in staged order
        ai_verdict: the single AI verdict (None when the run never reached the AI stage)
        degradations: checkers that crashed or ran out of time
        verdict: the overall pass/fail outcome
        blocking_reasons: human-readable reasons behind a FAIL verdict
    """
    findings: list[Finding] = field(default_factory=list)
    lint_results: list[LintResult] = field(default_factory=list)
    ai_verdict: Optional[AiVerdict] = None
    degradations: list[CheckerDegradation] = field(default_factory=list)
    verdict: Verdict = Verdict.PASS
    blocking_reasons: list[str] = field(default_factory=list)
    bypassed: bool = False
    staged_file_count: int = 0

    @property
    def passed(self) -> bool:
        return self.verdict == Verdict.PASS

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def findings_by_severity(self) -> dict[Severity, list[Finding]]:
        grouped: dict[Severity, list[Finding]] = {severity: [] for severity in Severity}
        for finding in self.findings:
            grouped[finding.severity].append(finding)
        return grouped

    def to_dict(self) -> dict:
        return {
            "verdict": self.verdict.value,
            "exit_code": self.exit_code,
            "bypassed": self.bypassed,
            "staged_file_count": self.staged_file_count,
            "blocking_reasons": list(self.blocking_reasons),
            "findings": [f.to_dict() for f in self.findings],
            "lint_results": [r.to_dict() for r in self.lint_results],
            "ai_verdict": self.ai_verdict.to_dict() if self.ai_verdict else None,
            "degradations": [d.to_dict() for d in self.degradations],
        }

    def __str__(self) -> str:
        status = "✓ PASSED" if self.passed else "✗ FAILED"
        return (
            f"{status}: {len(self.findings)} finding(s), "
            f"{sum(r.is_failed for r in self.lint_results)} lint failure(s), "
            f"AI {self.ai_verdict.outcome if self.ai_verdict else 'not run'}"
        )
