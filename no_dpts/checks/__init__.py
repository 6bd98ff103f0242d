# AGPL-3.0 License

"""
Pre-commit check engine.

This module provides the checks run against staged changes (secret
scanning, linting, AI review) and the orchestrator that runs them
concurrently and reduces their results to a single verdict.
"""

from no_dpts.checks.base_check import BaseCheck
from no_dpts.checks.check_context import CheckContext
from no_dpts.checks.check_result import (
    AiVerdict,
    CheckReport,
    CheckerDegradation,
    Finding,
    LintResult,
    Severity,
    Verdict,
)
from no_dpts.checks.patterns import PatternCatalog, PatternRule
from no_dpts.checks.secret_scanner import SecretScanner
from no_dpts.checks.linter_dispatcher import LinterDispatcher, LinterSpec
from no_dpts.checks.ai_reviewer import AiReviewer
from no_dpts.checks.orchestrator import CheckOrchestrator, RunState

__all__ = [
    "AiReviewer",
    "AiVerdict",
    "BaseCheck",
    "CheckContext",
    "CheckOrchestrator",
    "CheckReport",
    "CheckerDegradation",
    "Finding",
    "LintResult",
    "LinterDispatcher",
    "LinterSpec",
    "PatternCatalog",
    "PatternRule",
    "RunState",
    "SecretScanner",
    "Severity",
    "Verdict",
]
