# AGPL-3.0 License

"""
Line-by-line regex matching.

The functions here are used in-process by the secret scanner, and the module
also runs as a child process (``python -m no_dpts.algo.line_scanner``): it
reads a JSON request on stdin and writes redacted matches as JSON on stdout.
A regular expression cannot be interrupted once it starts matching, so a
pathological pattern is only stoppable by killing the process running it.

Only the standard library is imported here to keep the child's startup cheap.
"""

import json
import re
import sys
from typing import Iterable, Iterator, Protocol


class _Searchable(Protocol):
    def search(self, string: str): ...


def redact(matched: str, visible: int = 4, max_length: int = 24) -> str:
    """
    Mask a matched secret for display.

    Only the first ``visible`` characters survive (none for short matches,
    which would otherwise be shown almost whole); the rest is replaced by
    ``*`` and the result is capped at ``max_length`` characters.
    """
    if len(matched) <= visible * 2:
        return "*" * len(matched)

    masked = matched[:visible] + "*" * (len(matched) - visible)
    if len(masked) > max_length:
        masked = masked[:max_length - 3] + "..."
    return masked


def match_lines(text: str, patterns: Iterable[_Searchable]) -> Iterator[tuple[int, int, str]]:
    """
    Test every line against every pattern.

    Yields:
        (1-based line number, pattern index, matched text), in line then
        pattern order; at most one match per pattern and line
    """
    patterns = list(patterns)
    for line_number, line in enumerate(text.split("\n"), 1):
        for index, pattern in enumerate(patterns):
            match = pattern.search(line)
            # Zero-length matches carry nothing to report
            if match is None or not match.group(0):
                continue
            yield line_number, index, match.group(0)


def scan_request(request: dict) -> list[list]:
    """
    Answer one worker request.

    Request keys: ``patterns`` (regex sources), ``files`` (texts),
    ``visible`` and ``max_length`` (excerpt redaction). The answer holds
    ``[file index, line number, pattern index, excerpt]`` rows.
    """
    patterns = [re.compile(source) for source in request["patterns"]]
    return [
        [file_index, line_number, pattern_index, redact(matched, request["visible"], request["max_length"])]
        for file_index, text in enumerate(request["files"])
        for line_number, pattern_index, matched in match_lines(text, patterns)
    ]


def main() -> int:
    request = json.load(sys.stdin)
    json.dump(scan_request(request), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
