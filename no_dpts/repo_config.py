# AGPL-3.0 License

"""
Per-repository configuration (``no-dpts.toml``).

The file is optional. Absent fields fall back to defaults; a file that is
not valid TOML, or whose fields have the wrong shape, is a ConfigError.

Example::

    ignored_files = ["*.lock", "docs/**"]
    custom_patterns = [
        "MY_SECRET_[A-Z0-9]{32}",
        { name = "Internal token", pattern = "itk_[a-f0-9]{40}", severity = "high" },
    ]
    ai_model = "llama-3.3-70b-versatile"

    [rate_limit]
    requests_per_minute = 30

    [policy]
    fail_on_low_severity = false
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Iterable, Optional
import tomllib

import pathspec

from no_dpts.config_loader import get_settings
from no_dpts.errors import ConfigError
from no_dpts.log import get_logger


@dataclass(frozen=True)
class CustomPattern:
    """A user-supplied secret pattern, not yet compiled."""
    source: str
    name: Optional[str] = None
    severity: str = "medium"


@dataclass(frozen=True)
class RateLimitConfig:
    requests_per_minute: int = 30
    max_wait_seconds: float = 10.0


@dataclass(frozen=True)
class VerdictPolicy:
    """
    Which non-default conditions also fail the run.

    With every flag off, only high/medium findings, failed lints and an
    AI rejection block the commit.
    """
    fail_on_low_severity: bool = False
    fail_on_skipped_lint: bool = False
    fail_on_ai_unavailable: bool = False
    fail_on_degraded_checker: bool = False


@dataclass(frozen=True)
class CheckConfig:
    """
    Read-only configuration for a single check run.

    Shared by all concurrent checkers, so it must never be mutated.
    """
    ignored_files: tuple[str, ...] = ()
    custom_patterns: tuple[CustomPattern, ...] = ()
    ai_model: str = "llama-3.3-70b-versatile"
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    policy: VerdictPolicy = field(default_factory=VerdictPolicy)
    source_path: Optional[Path] = None

    @classmethod
    def defaults(cls) -> "CheckConfig":
        settings = get_settings()
        return cls(
            ai_model=settings.get("ai", {}).get("default_model", cls.ai_model),
            rate_limit=RateLimitConfig(
                requests_per_minute=int(settings.get("rate_limit", {}).get("requests_per_minute", 30)),
                max_wait_seconds=float(settings.get("rate_limit", {}).get("max_wait_seconds", 10)),
            ),
        )


_KNOWN_KEYS = {"ignored_files", "custom_patterns", "ai_model", "rate_limit", "policy"}
_SEVERITIES = {"high", "medium", "low"}


def compile_ignore_spec(globs: Iterable[str], path: Optional[Path] = None) -> Optional[pathspec.PathSpec]:
    """
    Compile gitwildmatch globs, or return None when there are none.

    Raises:
        ConfigError: a glob is not a valid gitignore pattern
    """
    globs = list(globs)
    if not globs:
        return None
    try:
        return pathspec.PathSpec.from_lines("gitwildmatch", globs)
    except ValueError as e:
        raise ConfigError(f"invalid glob in 'ignored_files': {e}", path=str(path) if path else None) from e


def find_config_file(repo_root: Path) -> Optional[Path]:
    """Return the first configuration file present at the repository root."""
    filenames = get_settings().get("config", {}).get("config_filenames", ["no-dpts.toml"])
    for name in filenames:
        candidate = Path(repo_root) / name
        if candidate.is_file():
            return candidate
    return None


def load_repo_config(repo_root: Path) -> CheckConfig:
    """
    Load the repository configuration, applying defaults for absent fields.

    Raises:
        ConfigError: the file exists but is malformed
    """
    logger = get_logger()
    path = find_config_file(repo_root)
    if path is None:
        logger.debug(f"No configuration file under {repo_root}, using defaults")
        return CheckConfig.defaults()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        # The decoder message already ends with "(at line N, column M)"
        raise ConfigError(f"malformed TOML: {e}", path=str(path)) from e
    except OSError as e:
        raise ConfigError(f"cannot read configuration: {e}", path=str(path)) from e

    config = parse_config(data, path=path)
    logger.debug(f"Loaded configuration from {path}")
    return config


def parse_config(data: dict[str, Any], path: Optional[Path] = None) -> CheckConfig:
    """Validate a decoded TOML document and build a CheckConfig from it."""
    where = str(path) if path else None
    defaults = CheckConfig.defaults()

    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        get_logger().warning(f"Ignoring unknown configuration keys: {', '.join(sorted(unknown))}")

    ignored_files = data.get("ignored_files", [])
    if not isinstance(ignored_files, list) or not all(isinstance(g, str) for g in ignored_files):
        raise ConfigError("'ignored_files' must be a list of glob strings", path=where)
    compile_ignore_spec(ignored_files, path)

    ai_model = data.get("ai_model", defaults.ai_model)
    if not isinstance(ai_model, str) or not ai_model.strip():
        raise ConfigError("'ai_model' must be a non-empty string", path=where)

    return CheckConfig(
        ignored_files=tuple(ignored_files),
        custom_patterns=_parse_custom_patterns(data.get("custom_patterns", []), where),
        ai_model=ai_model.strip(),
        rate_limit=_parse_rate_limit(data.get("rate_limit", {}), defaults.rate_limit, where),
        policy=_parse_policy(data.get("policy", {}), where),
        source_path=path,
    )


def _parse_custom_patterns(raw: Any, where: Optional[str]) -> tuple[CustomPattern, ...]:
    if not isinstance(raw, list):
        raise ConfigError("'custom_patterns' must be a list", path=where)

    patterns = []
    for index, entry in enumerate(raw, 1):
        if isinstance(entry, str):
            patterns.append(CustomPattern(source=entry))
            continue

        if not isinstance(entry, dict) or not isinstance(entry.get("pattern"), str):
            raise ConfigError(
                f"custom_patterns[{index}] must be a regex string or a table with a 'pattern' key",
                path=where,
            )

        severity = str(entry.get("severity", "medium")).lower()
        if severity not in _SEVERITIES:
            raise ConfigError(
                f"custom_patterns[{index}] has unknown severity {severity!r} "
                f"(expected one of: high, medium, low)",
                path=where,
            )

        name = entry.get("name")
        if name is not None and not isinstance(name, str):
            raise ConfigError(f"custom_patterns[{index}].name must be a string", path=where)

        patterns.append(CustomPattern(source=entry["pattern"], name=name, severity=severity))

    return tuple(patterns)


def _parse_rate_limit(raw: Any, default: RateLimitConfig, where: Optional[str]) -> RateLimitConfig:
    if not isinstance(raw, dict):
        raise ConfigError("'rate_limit' must be a table", path=where)

    rpm = raw.get("requests_per_minute", default.requests_per_minute)
    # bool is an int subclass; reject it explicitly
    if isinstance(rpm, bool) or not isinstance(rpm, int) or rpm <= 0:
        raise ConfigError("'rate_limit.requests_per_minute' must be a positive integer", path=where)

    max_wait = raw.get("max_wait_seconds", default.max_wait_seconds)
    if isinstance(max_wait, bool) or not isinstance(max_wait, (int, float)) or max_wait < 0:
        raise ConfigError("'rate_limit.max_wait_seconds' must be a non-negative number", path=where)

    return RateLimitConfig(requests_per_minute=rpm, max_wait_seconds=float(max_wait))


def _parse_policy(raw: Any, where: Optional[str]) -> VerdictPolicy:
    if not isinstance(raw, dict):
        raise ConfigError("'policy' must be a table", path=where)

    allowed = {f.name for f in fields(VerdictPolicy)}
    values = {}
    for key, value in raw.items():
        if key not in allowed:
            raise ConfigError(f"unknown policy option 'policy.{key}'", path=where)
        if not isinstance(value, bool):
            raise ConfigError(f"'policy.{key}' must be true or false", path=where)
        values[key] = value

    return VerdictPolicy(**values)
