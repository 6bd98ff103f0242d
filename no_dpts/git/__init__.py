# AGPL-3.0 License

from no_dpts.git.staging import (
    GitStagingArea,
    StagedFile,
    StagingSnapshot,
    detect_language,
)

__all__ = [
    "GitStagingArea",
    "StagedFile",
    "StagingSnapshot",
    "detect_language",
]
