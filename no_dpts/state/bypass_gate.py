# AGPL-3.0 License

"""
One-time bypass token.
"""

import os
import uuid
from pathlib import Path
from typing import Optional

from no_dpts.config_loader import get_settings
from no_dpts.log import get_logger


class BypassGate:
    """
    A marker file in the git directory that lets exactly one check run pass unchecked.

    Consumption renames the token to a name unique to the caller before
    deleting it. ``rename`` is atomic, so when several hooks race for the
    same token exactly one of them wins and the others see it as absent.
    """

    def __init__(self, git_dir: Path, token_name: Optional[str] = None):
        """
        Args:
            git_dir: The repository's private control directory
            token_name: File name of the marker (default from settings)
        """
        self.git_dir = Path(git_dir)
        self.token_name = token_name or get_settings().get("config", {}).get("bypass_token_name", "NO_DPTS_SKIP")
        self.logger = get_logger()

    @property
    def token_path(self) -> Path:
        return self.git_dir / self.token_name

    def is_present(self) -> bool:
        return self.token_path.is_file()

    def create(self) -> Path:
        """
        Write the token, replacing any existing one.

        The content is written to a temporary name first so a concurrent
        consumer never sees a half-written token.
        """
        tmp_path = self.git_dir / f".{self.token_name}.{os.getpid()}.{uuid.uuid4().hex}.tmp"
        tmp_path.write_text("BYPASS_TOKEN\n")
        os.replace(tmp_path, self.token_path)
        self.logger.info(f"Created bypass token at {self.token_path}")
        return self.token_path

    def consume_if_present(self) -> bool:
        """
        Atomically claim and delete the token.

        Returns:
            True iff this call removed an existing token
        """
        claim_path = self.git_dir / f".{self.token_name}.{os.getpid()}.{uuid.uuid4().hex}.claimed"
        try:
            os.rename(self.token_path, claim_path)
        except FileNotFoundError:
            return False

        try:
            claim_path.unlink()
        except OSError as e:
            # The token is already claimed; a leftover claim file grants nothing.
            self.logger.warning(f"Could not delete claimed bypass token {claim_path}: {e}")

        self.logger.info("Bypass token consumed")
        return True
