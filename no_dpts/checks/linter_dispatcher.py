# AGPL-3.0 License

"""
Dispatch of staged files to external linters.

Linters read the staged blob on stdin, with the repository-relative path
passed along so they can resolve their own configuration and report the
right file name. The working tree copy is never linted.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence
import shutil

from no_dpts.checks.base_check import BaseCheck
from no_dpts.checks.check_context import CheckContext
from no_dpts.checks.check_result import (
    LintResult,
    SKIP_NO_LINTER,
    SKIP_NOT_INSTALLED,
    SKIP_TIMED_OUT,
)
from no_dpts.config_loader import get_settings
from no_dpts.errors import ProcessTimeoutError
from no_dpts.git.staging import StagedFile
from no_dpts.log import get_logger
from no_dpts.utils.process import ProcessRunner


@dataclass(frozen=True)
class LinterSpec:
    """
    How to invoke one linter.

    ``args`` may contain ``{path}``, replaced by the staged file's
    repository-relative path. ``timeout`` overrides the global linting
    timeout when set.
    """
    command: str
    args: tuple[str, ...] = ()
    timeout: Optional[float] = None

    def argv(self, path: str) -> list[str]:
        return [self.command, *(arg.replace("{path}", path) for arg in self.args)]


_ESLINT = LinterSpec("eslint", ("--no-error-on-unmatched-pattern", "--stdin", "--stdin-filename", "{path}"))

DEFAULT_LINTERS: Mapping[str, LinterSpec] = MappingProxyType({
    "python": LinterSpec("ruff", ("check", "--stdin-filename", "{path}", "-")),
    "javascript": _ESLINT,
    "typescript": _ESLINT,
    "rust": LinterSpec("rustfmt", ("--check", "--edition", "2021")),
    "shell": LinterSpec("shellcheck", ("-",)),
})


class LinterDispatcher(BaseCheck):
    """
    Runs at most one linter per staged file, several files at a time.

    Degradations (no linter for the language, linter missing, linter too
    slow) become skipped results; they never abort the run.
    """

    name = "lint"

    def __init__(
        self,
        linters: Mapping[str, LinterSpec] = DEFAULT_LINTERS,
        runner: Optional[ProcessRunner] = None,
        repo_root: Optional[Path] = None,
        max_parallel: Optional[int] = None,
        timeout: Optional[float] = None,
        exclude_paths: Optional[list[str]] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        """
        Args:
            linters: language tag to linter mapping
            runner: process runner (injectable for tests)
            repo_root: working directory for linter processes
            max_parallel: cap on simultaneously running linters
            timeout: per-linter timeout in seconds
            exclude_paths: globs never linted
            which: executable lookup, ``shutil.which`` semantics
        """
        super().__init__(exclude_paths)
        linting_settings = get_settings().get("linting", {})
        self.linters = MappingProxyType(dict(linters))
        self.runner = runner or ProcessRunner()
        self.repo_root = repo_root
        self.max_parallel = max(1, int(max_parallel or linting_settings.get("max_parallel", 4)))
        self.timeout = float(timeout if timeout is not None else linting_settings.get("timeout_seconds", 60))
        self.which = which
        self.logger = get_logger()

    async def run(self, context: CheckContext) -> list[LintResult]:
        """Lint the run's staged files that are not ignored."""
        return await self.lint(self.filter_files(context), cwd=self.repo_root or context.repo_root)

    async def lint(self, files: Sequence[StagedFile], cwd: Optional[Path] = None) -> list[LintResult]:
        """
        Lint staged files concurrently.

        Args:
            files: Staged files to lint
            cwd: working directory for the linters (default: ``repo_root``)

        Returns:
            One LintResult per file, in input order
        """
        semaphore = asyncio.Semaphore(self.max_parallel)

        async def bounded(staged: StagedFile) -> LintResult:
            async with semaphore:
                return await self.lint_file(staged, cwd or self.repo_root)

        results = await asyncio.gather(*(bounded(staged) for staged in files))

        failed = sum(r.is_failed for r in results)
        skipped = sum(r.is_skipped for r in results)
        self.logger.info(
            f"Linting finished: {len(results) - failed - skipped} passed, {failed} failed, {skipped} skipped"
        )
        return list(results)

    async def lint_file(self, staged: StagedFile, cwd: Optional[Path] = None) -> LintResult:
        spec = self.linters.get(staged.language) if staged.language else None
        if spec is None:
            return LintResult.skipped(staged.path, "none", SKIP_NO_LINTER)

        if self.which(spec.command) is None:
            self.logger.debug(f"{spec.command} not found on PATH, skipping {staged.path}")
            return LintResult.skipped(staged.path, spec.command, SKIP_NOT_INSTALLED)

        timeout = spec.timeout or self.timeout
        try:
            output = await self.runner.run(
                spec.argv(staged.path),
                input=staged.content,
                timeout=timeout,
                cwd=cwd,
            )
        except (FileNotFoundError, PermissionError) as e:
            self.logger.warning(f"Could not start {spec.command}: {e}")
            return LintResult.skipped(staged.path, spec.command, SKIP_NOT_INSTALLED)
        except ProcessTimeoutError:
            self.logger.warning(f"{spec.command} timed out after {timeout:g}s on {staged.path}")
            return LintResult.skipped(staged.path, spec.command, SKIP_TIMED_OUT)

        if output.exit_code == 0:
            return LintResult.passed(staged.path, spec.command)

        diagnostics = [
            line.rstrip()
            for line in (output.stdout + "\n" + output.stderr).splitlines()
            if line.strip()
        ]
        if not diagnostics:
            diagnostics = [f"{spec.command} exited with status {output.exit_code}"]
        return LintResult.failed(staged.path, spec.command, diagnostics)
