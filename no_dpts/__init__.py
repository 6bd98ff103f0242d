# AGPL-3.0 License

"""
no-dpts: a git pre-commit gatekeeper.

Runs secret scanning, linting and an AI review against the staged
changes and reduces the results to a single pass/fail verdict.
"""

__version__ = "0.1.0"
