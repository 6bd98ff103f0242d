# AGPL-3.0 License

"""
Init tool - installs the pre-commit hook and an example configuration.
"""

import stat
from pathlib import Path

from no_dpts.config_loader import get_settings
from no_dpts.git.staging import GitStagingArea
from no_dpts.log import get_logger

HOOK_MARKER = "# no-dpts pre-commit hook"

PRECOMMIT_HOOK_CONTENT = f"""#!/bin/sh
{HOOK_MARKER}
# Runs secret scanning, linting and AI review on staged changes

no-dpts check
exit_code=$?

if [ $exit_code -ne 0 ]; then
    echo ""
    echo "Commit blocked by no-dpts."
    echo "Fix the issues above or run 'no-dpts bypass' to skip checks once."
    exit 1
fi

exit 0
"""

EXAMPLE_CONFIG = """# no-dpts configuration file

# Files to ignore during scanning and linting (gitignore-style globs)
ignored_files = [
    "*.lock",
    "*.min.js",
    "*.min.css",
    "package-lock.json",
    "yarn.lock",
]

# Custom regex patterns for project-specific secrets,
# in addition to the built-in patterns
custom_patterns = [
    # "MY_SECRET_[A-Z0-9]{32}",
    # { name = "Internal token", pattern = "itk_[a-f0-9]{40}", severity = "high" },
]

# AI model to use for code review (Groq models)
ai_model = "llama-3.3-70b-versatile"

# Rate limiting for AI API calls
[rate_limit]
requests_per_minute = 30

# Conditions that block a commit in addition to the defaults
[policy]
fail_on_low_severity = false
fail_on_skipped_lint = false
fail_on_ai_unavailable = false
fail_on_degraded_checker = false
"""


class InitTool:
    """
    Installs no-dpts into a repository.

    An existing pre-commit hook that was not written by no-dpts is left
    untouched unless ``force`` is set.
    """

    def __init__(self, repo_root: Path, force: bool = False):
        self.repo_root = Path(repo_root)
        self.staging = GitStagingArea(self.repo_root)
        self.force = force
        self.logger = get_logger()

    def run(self) -> list[str]:
        """Install the hook and example config; return progress messages."""
        messages = []
        hooks_dir = self.staging.git_dir() / "hooks"
        hooks_dir.mkdir(parents=True, exist_ok=True)

        hook_path = hooks_dir / "pre-commit"
        if hook_path.exists() and not self.force and HOOK_MARKER not in hook_path.read_text(errors="replace"):
            messages.append(f"⚠ {hook_path} already exists and was not installed by no-dpts; use --force to replace it")
        else:
            hook_path.write_text(PRECOMMIT_HOOK_CONTENT)
            hook_path.chmod(hook_path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            self.logger.info(f"Installed pre-commit hook at {hook_path}")
            messages.append("✓ Created pre-commit hook")

        config_name = get_settings().get("config", {}).get("config_filenames", ["no-dpts.toml"])[0]
        config_path = self.repo_root / config_name
        if not config_path.exists():
            config_path.write_text(EXAMPLE_CONFIG)
            messages.append(f"✓ Created example {config_name} config")

        api_key_env = get_settings().get("ai", {}).get("api_key_env", "GROQ_API_KEY")
        messages.extend([
            "",
            "Next steps:",
            f"  1. Export {api_key_env} to enable the AI review",
            f"  2. Customize {config_name} as needed",
            "  3. Stage your changes and commit - checks run automatically",
            "",
            "To bypass checks once: no-dpts bypass",
        ])
        return messages
