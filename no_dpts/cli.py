# AGPL-3.0 License

import argparse
import asyncio
import sys
from pathlib import Path

from no_dpts.config_loader import get_settings
from no_dpts.errors import NoDptsError
from no_dpts.git.staging import GitStagingArea
from no_dpts.log import LoggingFormat, get_logger, setup_logger
from no_dpts.tools.bypass import BypassTool
from no_dpts.tools.init_hook import InitTool
from no_dpts.tools.pre_commit_check import PreCommitCheck

EXIT_CONFIG_ERROR = 2


def set_parser():
    parser = argparse.ArgumentParser(
        prog="no-dpts",
        description="A git-integrated pre-commit gatekeeper",
        usage="""\
Usage: no-dpts <command> [<args>]

Supported commands:
- check  : Run all checks on staged files (called by the pre-commit hook).
- bypass : Skip checks for the next commit (creates a one-time skip token).
- init   : Install the pre-commit hook in the current repository.
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check", help="Run all checks on staged files")
    check.add_argument("--format", choices=["text", "json"], default="text", help="Report format")

    subparsers.add_parser("bypass", help="Skip checks for the next commit")

    init = subparsers.add_parser("init", help="Install the pre-commit hook")
    init.add_argument("--force", action="store_true", help="Replace an existing pre-commit hook")
    return parser


def run_command(args: argparse.Namespace) -> int:
    repo_root = GitStagingArea.discover().repo_root

    if args.command == "check":
        return asyncio.run(PreCommitCheck(repo_root, output_format=args.format).run())

    if args.command == "bypass":
        print(BypassTool(repo_root).run())
        return 0

    if args.command == "init":
        print("\n".join(InitTool(repo_root, force=args.force).run()))
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def run(inargs=None) -> int:
    parser = set_parser()
    args = parser.parse_args(inargs)

    config = get_settings().get("config", {})
    level = "DEBUG" if args.verbose else config.get("log_level", "WARNING")
    setup_logger(level, LoggingFormat(config.get("log_format", "CONSOLE").upper()))

    try:
        return run_command(args)
    except NoDptsError as e:
        get_logger().debug(f"Aborting: {e!r}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
