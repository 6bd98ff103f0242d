# AGPL-3.0 License

"""
Check orchestration and execution management.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence

from no_dpts.checks.ai_reviewer import AiReviewer, UNAVAILABLE_TIMEOUT
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
from no_dpts.checks.linter_dispatcher import LinterDispatcher
from no_dpts.checks.patterns import PatternCatalog
from no_dpts.checks.secret_scanner import SecretScanner
from no_dpts.config_loader import get_settings
from no_dpts.errors import ProcessTimeoutError
from no_dpts.git.staging import GitStagingArea
from no_dpts.log import get_logger
from no_dpts.repo_config import CheckConfig, VerdictPolicy, compile_ignore_spec, load_repo_config
from no_dpts.state.bypass_gate import BypassGate


class RunState(str, Enum):
    START = "start"
    BYPASS_CHECK = "bypass_check"
    SHORT_CIRCUIT_PASS = "short_circuit_pass"
    LOADING = "loading"
    RUNNING = "running"
    AGGREGATING = "aggregating"
    DONE = "done"


def decide_verdict(
    findings: Sequence[Finding],
    lint_results: Sequence[LintResult],
    ai_verdict: Optional[AiVerdict],
    degradations: Sequence[CheckerDegradation],
    policy: VerdictPolicy,
) -> tuple[Verdict, list[str]]:
    """
    Reduce check results to a verdict.

    High and medium findings, failed lints and an AI rejection always
    fail the run. Low findings, skipped lints, an unavailable AI review
    and degraded checkers only do so when the policy says so.

    Returns:
        The verdict and the reasons behind it (empty for PASS)
    """
    reasons = []

    blocking_findings = [
        f for f in findings
        if f.severity.blocks_by_default or (policy.fail_on_low_severity and f.severity == Severity.LOW)
    ]
    if blocking_findings:
        reasons.append(f"{len(blocking_findings)} secret finding(s)")

    failed_lints = [r for r in lint_results if r.is_failed]
    if failed_lints:
        reasons.append(f"{len(failed_lints)} file(s) failed linting")

    if policy.fail_on_skipped_lint:
        skipped_lints = [r for r in lint_results if r.is_skipped]
        if skipped_lints:
            reasons.append(f"{len(skipped_lints)} file(s) could not be linted")

    if ai_verdict is not None:
        if ai_verdict.is_rejected:
            reasons.append("AI review rejected the changes")
        elif ai_verdict.is_unavailable and policy.fail_on_ai_unavailable:
            reasons.append(f"AI review unavailable ({ai_verdict.reason})")

    if degradations and policy.fail_on_degraded_checker:
        reasons.append(f"{len(degradations)} checker(s) did not complete")

    return (Verdict.FAIL if reasons else Verdict.PASS), reasons


class CheckOrchestrator:
    """
    Runs one pre-commit check from bypass resolution to verdict.

    States: START -> BYPASS_CHECK -> (SHORT_CIRCUIT_PASS | LOADING) ->
    RUNNING -> AGGREGATING -> DONE. Configuration and git errors raised
    while loading propagate to the caller; anything a checker raises is
    contained and reported as a degradation of that checker.
    """

    def __init__(
        self,
        repo_root: Path,
        staging: Optional[GitStagingArea] = None,
        bypass_gate: Optional[BypassGate] = None,
        secret_scanner: Optional[SecretScanner] = None,
        linter_dispatcher: Optional[LinterDispatcher] = None,
        ai_reviewer: Optional[AiReviewer] = None,
        config_loader: Callable[[Path], CheckConfig] = load_repo_config,
        run_timeout: Optional[float] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            repo_root: Root of the repository being committed to
            staging: Access to the git index
            bypass_gate: Bypass token holder (default: token in the git directory)
            secret_scanner: Secret checker
            linter_dispatcher: Lint checker
            ai_reviewer: AI checker
            config_loader: Loads the repository configuration
            run_timeout: Wall-clock budget for the concurrent checking phase, in seconds
        """
        self.repo_root = Path(repo_root)
        self.staging = staging or GitStagingArea(self.repo_root)
        self._bypass_gate = bypass_gate
        self.secret_scanner = secret_scanner or SecretScanner()
        self.linter_dispatcher = linter_dispatcher or LinterDispatcher(repo_root=self.repo_root)
        self.ai_reviewer = ai_reviewer or AiReviewer()
        self.config_loader = config_loader
        if run_timeout is None:
            run_timeout = get_settings().get("config", {}).get("run_timeout_seconds", 180)
        self.run_timeout = float(run_timeout)
        self.state = RunState.START
        self.transitions: list[RunState] = [RunState.START]
        self.logger = get_logger()

    @property
    def bypass_gate(self) -> BypassGate:
        if self._bypass_gate is None:
            self._bypass_gate = BypassGate(self.staging.git_dir())
        return self._bypass_gate

    @property
    def checks(self) -> list[BaseCheck]:
        return [self.secret_scanner, self.linter_dispatcher, self.ai_reviewer]

    def _transition(self, state: RunState) -> None:
        self.logger.debug(f"Check run: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)

    async def run(self) -> CheckReport:
        """
        Execute the full check pipeline.

        Returns:
            The aggregated report; ``report.exit_code`` is the hook's exit status

        Raises:
            ConfigError: the configuration or a custom pattern is invalid
            GitError: the staged files could not be read
        """
        self._transition(RunState.BYPASS_CHECK)
        if self.bypass_gate.consume_if_present():
            self.logger.warning("Bypass token found - skipping all checks for this commit")
            self._transition(RunState.SHORT_CIRCUIT_PASS)
            self._transition(RunState.DONE)
            return CheckReport(bypassed=True)

        self._transition(RunState.LOADING)
        config = self.config_loader(self.repo_root)
        catalog = PatternCatalog.build(
            config.custom_patterns,
            config_path=str(config.source_path) if config.source_path else None,
        )
        ignore_spec = compile_ignore_spec(config.ignored_files, config.source_path)
        snapshot = self.staging.capture_snapshot()

        if snapshot.is_empty:
            self.logger.info("No staged files to check")
            self._transition(RunState.DONE)
            return CheckReport()

        context = CheckContext(
            repo_root=self.repo_root,
            snapshot=snapshot,
            config=config,
            catalog=catalog,
            ignore_spec=ignore_spec,
        )

        self._transition(RunState.RUNNING)
        findings, lint_results, ai_verdict, degradations = await self._run_checks(context)

        self._transition(RunState.AGGREGATING)
        verdict, reasons = decide_verdict(findings, lint_results, ai_verdict, degradations, config.policy)
        report = CheckReport(
            findings=findings,
            lint_results=lint_results,
            ai_verdict=ai_verdict,
            degradations=degradations,
            verdict=verdict,
            blocking_reasons=reasons,
            staged_file_count=len(snapshot.files),
        )

        self._transition(RunState.DONE)
        self.logger.info(f"Check run completed: {report}")
        return report

    async def _run_checks(
        self, context: CheckContext
    ) -> tuple[list[Finding], list[LintResult], AiVerdict, list[CheckerDegradation]]:
        """
        Run all checks concurrently under the run budget.

        Every task reaches a terminal state before this returns: finished,
        failed with an exception, or cancelled by the budget.
        """
        self.logger.info(f"Running {len(self.checks)} checks in parallel on {len(context.files)} file(s)")

        tasks = {
            check.name: asyncio.create_task(self._run_single_check(check, context))
            for check in self.checks
        }
        done, pending = await asyncio.wait(tasks.values(), timeout=self.run_timeout)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results = {}
        degradations = []
        for name, task in tasks.items():
            if task in pending:
                self.logger.warning(f"Check {name} timed out after the {self.run_timeout:g}s run budget")
                degradations.append(CheckerDegradation(
                    checker=name,
                    reason=f"did not finish within the {self.run_timeout:g}s run budget",
                    timed_out=True,
                ))
            elif task.cancelled():
                degradations.append(CheckerDegradation(checker=name, reason="check was cancelled"))
            elif task.exception() is not None:
                error = task.exception()
                self.logger.error(f"Check {name} failed with exception: {error}")
                degradations.append(CheckerDegradation(
                    checker=name,
                    reason=f"check failed with error: {error}",
                    timed_out=isinstance(error, ProcessTimeoutError),
                ))
            else:
                results[name] = task.result()

        findings = results.get(self.secret_scanner.name, [])
        lint_results = results.get(self.linter_dispatcher.name, [])
        ai_verdict = results.get(self.ai_reviewer.name)
        if ai_verdict is None:
            ai_degradation = next(d for d in degradations if d.checker == self.ai_reviewer.name)
            ai_verdict = AiVerdict.unavailable(
                UNAVAILABLE_TIMEOUT if ai_degradation.timed_out else ai_degradation.reason
            )

        return findings, lint_results, ai_verdict, degradations

    async def _run_single_check(self, check: BaseCheck, context: CheckContext):
        """
        Execute a single check with logging.

        Args:
            check: Check to execute
            context: Check context

        Returns:
            The check's result
        """
        self.logger.info(f"Running check: {check.name}")
        result = await check.run(context)
        self.logger.info(f"Check {check.name} completed")
        return result
