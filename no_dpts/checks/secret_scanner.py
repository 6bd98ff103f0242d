# AGPL-3.0 License

"""
Secret scanning of staged file content.
"""

import json
import sys
from pathlib import Path
from typing import Optional, Sequence

import pathspec

import no_dpts
from no_dpts.algo.line_scanner import match_lines, redact
from no_dpts.checks.base_check import BaseCheck
from no_dpts.checks.check_context import CheckContext
from no_dpts.checks.check_result import Finding
from no_dpts.checks.patterns import PatternCatalog
from no_dpts.config_loader import get_settings
from no_dpts.errors import ScanError
from no_dpts.git.staging import StagedFile
from no_dpts.log import get_logger
from no_dpts.utils.process import ProcessRunner

# Directory holding the no_dpts package, so ``-m`` resolves it however it is installed
_IMPORT_ROOT = Path(no_dpts.__file__).resolve().parent.parent
_WORKER_MODULE = "no_dpts.algo.line_scanner"


class SecretScanner(BaseCheck):
    """
    Line-based secret detection over staged content.

    For each non-ignored file, every line is tested against every rule in
    catalog order; a rule contributes at most one finding per line. The
    output is ordered by file, then line, then rule, and depends only on
    the inputs.

    During a check run the matching happens in a child process, which is
    killed when the run is cancelled or the scan exceeds its timeout.
    """

    name = "secrets"

    def __init__(
        self,
        exclude_paths: Optional[list[str]] = None,
        excerpt_visible_chars: Optional[int] = None,
        excerpt_max_chars: Optional[int] = None,
        runner: Optional[ProcessRunner] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(exclude_paths)
        scanner_settings = get_settings().get("scanner", {})
        self.excerpt_visible_chars = excerpt_visible_chars or scanner_settings.get("excerpt_visible_chars", 4)
        self.excerpt_max_chars = excerpt_max_chars or scanner_settings.get("excerpt_max_chars", 24)
        self.runner = runner or ProcessRunner()
        if timeout is None:
            timeout = scanner_settings.get("timeout_seconds", 120)
        self.timeout = float(timeout)
        self.logger = get_logger()

    async def run(self, context: CheckContext) -> list[Finding]:
        """
        Scan the run's staged files in an isolated process.

        Raises:
            ProcessTimeoutError: the scan did not finish within ``timeout``
            ScanError: the worker process failed
        """
        selected = self.select_files(context.files, context.ignore_spec)
        if not selected:
            return []

        request = {
            "patterns": [rule.source for rule in context.catalog],
            "files": [staged.text for staged in selected],
            "visible": self.excerpt_visible_chars,
            "max_length": self.excerpt_max_chars,
        }
        output = await self.runner.run(
            [sys.executable, "-m", _WORKER_MODULE],
            input=json.dumps(request).encode("utf-8"),
            timeout=self.timeout,
            cwd=_IMPORT_ROOT,
        )
        if output.exit_code != 0:
            raise ScanError(f"scan worker exited with status {output.exit_code}: {output.stderr.strip()}")

        try:
            rows = json.loads(output.stdout)
        except json.JSONDecodeError as e:
            raise ScanError(f"scan worker returned invalid output: {e}") from e

        rules = context.catalog.rules
        findings = [
            Finding(
                rule_name=rules[rule_index].name,
                severity=rules[rule_index].severity,
                file_path=selected[file_index].path,
                line_number=line_number,
                excerpt=excerpt,
            )
            for file_index, line_number, rule_index, excerpt in rows
        ]
        self.logger.info(f"Secret scan found {len(findings)} finding(s) in {len(selected)} file(s)")
        return findings

    def scan(
        self,
        files: Sequence[StagedFile],
        catalog: PatternCatalog,
        ignore_spec: Optional[pathspec.PathSpec] = None,
    ) -> list[Finding]:
        """
        Scan staged files for secrets in the current process.

        Args:
            files: Staged files, in staged order
            catalog: Compiled rules
            ignore_spec: Files matching it are never evaluated

        Returns:
            Findings in file, line, rule order
        """
        selected = self.select_files(files, ignore_spec)
        skipped = len(files) - len(selected)
        if skipped:
            self.logger.debug(f"Secret scan skipping {skipped} ignored file(s)")

        findings = []
        for staged in selected:
            findings.extend(self._scan_file(staged, catalog))

        self.logger.info(f"Secret scan found {len(findings)} finding(s) in {len(selected)} file(s)")
        return findings

    def _scan_file(self, staged: StagedFile, catalog: PatternCatalog) -> list[Finding]:
        rules = catalog.rules
        return [
            Finding(
                rule_name=rules[index].name,
                severity=rules[index].severity,
                file_path=staged.path,
                line_number=line_number,
                excerpt=redact(matched, self.excerpt_visible_chars, self.excerpt_max_chars),
            )
            for line_number, index, matched in match_lines(staged.text, (rule.pattern for rule in rules))
        ]
