# AGPL-3.0 License

"""
Read-only access to the git index.

Everything here reflects what is staged, not the working tree: staged
content comes from ``git show :<path>`` and the diff from
``git diff --cached``.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional
import subprocess

from no_dpts.errors import GitError
from no_dpts.log import get_logger


EXTENSION_LANGUAGES = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".rs": "rust",
    ".sh": "shell",
    ".bash": "shell",
    ".go": "go",
    ".rb": "ruby",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".toml": "toml",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
}


def detect_language(path: str) -> Optional[str]:
    """Map a file path to a language tag by extension, or None if unknown."""
    return EXTENSION_LANGUAGES.get(PurePosixPath(path).suffix.lower())


@dataclass(frozen=True)
class StagedFile:
    """A staged file and the content of its index blob at capture time."""

    path: str
    language: Optional[str]
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class StagingSnapshot:
    """Staged files and the staged diff, captured together for one run."""

    files: tuple[StagedFile, ...]
    diff: str

    @property
    def is_empty(self) -> bool:
        return not self.files


class GitStagingArea:
    """
    Thin wrapper over the git CLI for one repository.
    """

    def __init__(self, repo_root: Path):
        self.repo_root = Path(repo_root)
        self.logger = get_logger()

    @classmethod
    def discover(cls, start: Optional[Path] = None) -> "GitStagingArea":
        """Locate the enclosing repository of ``start`` (default: cwd)."""
        out = _run_git(["rev-parse", "--show-toplevel"], cwd=start or Path.cwd())
        return cls(Path(out.decode().strip()))

    def git_dir(self) -> Path:
        """Private control directory of the repository (usually ``.git``)."""
        out = self._git(["rev-parse", "--absolute-git-dir"])
        return Path(out.decode().strip())

    def list_staged(self) -> list[str]:
        """Paths added, copied, modified or renamed in the index."""
        out = self._git(["diff", "--cached", "--name-only", "--diff-filter=ACMR", "-z"])
        return [p for p in out.decode("utf-8", errors="surrogateescape").split("\0") if p]

    def read_staged_content(self, path: str) -> bytes:
        return self._git(["show", f":{path}"])

    def diff_staged(self) -> str:
        return self._git(["diff", "--cached", "--no-color"]).decode("utf-8", errors="replace")

    def capture_snapshot(self) -> StagingSnapshot:
        """
        Read every staged file and the staged diff.

        Files whose blob cannot be read (e.g. submodule entries) are left
        out with a warning rather than failing the run.
        """
        files = []
        for path in self.list_staged():
            try:
                content = self.read_staged_content(path)
            except GitError as e:
                self.logger.warning(f"Could not read staged content of {path}: {e}")
                continue
            files.append(StagedFile(path=path, language=detect_language(path), content=content))

        diff = self.diff_staged() if files else ""
        self.logger.debug(f"Captured {len(files)} staged file(s)")
        return StagingSnapshot(files=tuple(files), diff=diff)

    def _git(self, args: list[str]) -> bytes:
        return _run_git(args, cwd=self.repo_root)


def _run_git(args: list[str], cwd: Path) -> bytes:
    argv = ["git", *args]
    try:
        completed = subprocess.run(argv, cwd=cwd, capture_output=True, check=False)
    except FileNotFoundError as e:
        raise GitError("git executable not found") from e

    if completed.returncode != 0:
        detail = completed.stderr.decode("utf-8", errors="replace").strip()
        raise GitError(f"{' '.join(argv)} failed ({completed.returncode}): {detail}")
    return completed.stdout
