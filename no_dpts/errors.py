# AGPL-3.0 License

"""
Exception hierarchy.

Only conditions that stop the whole run are exceptions. A checker that
cannot do its job (missing linter, unreachable AI service, rate limit)
is reported as a degradation inside the check report instead.
"""

from typing import Optional


class NoDptsError(Exception):
    """Base class for all errors raised by no-dpts."""


class ConfigError(NoDptsError):
    """
    The repository configuration is unusable.

    Raised before any check runs; the message carries the file path and,
    for TOML syntax errors, the line and column reported by the parser.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class InvalidPatternError(ConfigError):
    """A secret-detection pattern failed to compile."""

    def __init__(self, source: str, reason: str, path: Optional[str] = None):
        self.source = source
        self.reason = reason
        super().__init__(f"invalid pattern {source!r}: {reason}", path=path)


class GitError(NoDptsError):
    """A git command needed to read the index failed."""


class ProcessTimeoutError(NoDptsError):
    """An external process exceeded its time budget and was killed."""

    def __init__(self, argv: tuple[str, ...], timeout: float):
        self.argv = argv
        self.timeout = timeout
        super().__init__(f"{argv[0]} timed out after {timeout:g}s")


class ScanError(NoDptsError):
    """The secret scan worker process failed or returned garbage."""
