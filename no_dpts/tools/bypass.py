# AGPL-3.0 License

"""
Bypass tool - authorizes the next commit to skip all checks.
"""

from pathlib import Path

from no_dpts.git.staging import GitStagingArea
from no_dpts.log import get_logger
from no_dpts.state.bypass_gate import BypassGate


class BypassTool:
    """
    Creates the one-time bypass token.
    """

    def __init__(self, repo_root: Path):
        self.staging = GitStagingArea(repo_root)
        self.logger = get_logger()

    def run(self) -> str:
        """Create the token and return the message shown to the user."""
        gate = BypassGate(self.staging.git_dir())
        path = gate.create()
        self.logger.warning(f"Bypass token created at {path}")
        return "\n".join([
            "✓ Bypass token created",
            "",
            "⚠️  Your next commit will skip all checks.",
            "The bypass token is deleted automatically after one use.",
            "This is intended for emergency situations only.",
        ])
