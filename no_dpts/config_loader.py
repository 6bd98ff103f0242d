# AGPL-3.0 License

"""
Packaged default settings.

Tool-wide defaults (timeouts, parallelism, AI provider, prompt templates)
live in TOML files under ``no_dpts/settings`` and are loaded once through
Dynaconf. Any value can be overridden with a ``NO_DPTS_`` prefixed
environment variable, e.g. ``NO_DPTS_LINTING__TIMEOUT_SECONDS=30``.

Per-repository options (ignore globs, custom patterns, policy) are not
kept here; see :mod:`no_dpts.repo_config`.
"""

from pathlib import Path

from dynaconf import Dynaconf

SETTINGS_DIR = Path(__file__).parent / "settings"

global_settings = Dynaconf(
    envvar_prefix="NO_DPTS",
    merge_enabled=True,
    settings_files=[
        str(SETTINGS_DIR / f)
        for f in [
            "configuration.toml",
            "review_prompts.toml",
        ]
    ],
)


def get_settings() -> Dynaconf:
    return global_settings
