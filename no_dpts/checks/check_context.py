# AGPL-3.0 License

"""
Check context data for pre-commit checks.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pathspec

from no_dpts.checks.patterns import PatternCatalog
from no_dpts.git.staging import StagedFile, StagingSnapshot
from no_dpts.repo_config import CheckConfig


@dataclass(frozen=True)
class CheckContext:
    """
    Context data provided to checks during execution.

    One instance is published per run and shared read-only by every
    concurrently running check.
    """

    repo_root: Path
    snapshot: StagingSnapshot
    config: CheckConfig
    catalog: PatternCatalog
    ignore_spec: Optional[pathspec.PathSpec] = None

    @property
    def files(self) -> tuple[StagedFile, ...]:
        return self.snapshot.files

    @property
    def diff(self) -> str:
        return self.snapshot.diff
