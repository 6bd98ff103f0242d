# AGPL-3.0 License

"""
Base class for all pre-commit checks.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional
import pathspec

from no_dpts.checks.check_context import CheckContext
from no_dpts.git.staging import StagedFile
from no_dpts.repo_config import compile_ignore_spec


class BaseCheck(ABC):
    """
    Abstract base class for all pre-commit checks.

    Each check can exclude files using glob patterns; the repository's
    ``ignored_files`` are always excluded on top of those.
    """

    name: str = "check"

    def __init__(self, exclude_paths: Optional[list[str]] = None):
        """
        Initialize a check.

        Args:
            exclude_paths: Glob patterns for files this check never looks at

        Raises:
            ConfigError: a glob is not a valid gitignore pattern
        """
        self.exclude_paths = exclude_paths or []
        self._exclude_spec = compile_ignore_spec(self.exclude_paths)

    def select_files(
        self, files: Iterable[StagedFile], ignore_spec: Optional[pathspec.PathSpec] = None
    ) -> list[StagedFile]:
        """
        Drop files excluded by this check or by the repository's ignore globs.

        Args:
            files: Staged files, in staged order
            ignore_spec: Compiled ``ignored_files`` of the repository

        Returns:
            The remaining files, order preserved
        """
        specs = [spec for spec in (self._exclude_spec, ignore_spec) if spec is not None]
        return [
            staged for staged in files
            if not any(spec.match_file(staged.path) for spec in specs)
        ]

    def filter_files(self, context: CheckContext) -> list[StagedFile]:
        """Select the staged files of the run relevant to this check."""
        return self.select_files(context.files, context.ignore_spec)

    @abstractmethod
    async def run(self, context: CheckContext) -> Any:
        """
        Execute the check and return its results.

        Args:
            context: Check context with the staged snapshot

        Returns:
            The check's own result type
        """
        pass
