# AGPL-3.0 License

"""
Asynchronous execution of external commands.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from no_dpts.errors import ProcessTimeoutError
from no_dpts.log import get_logger


@dataclass(frozen=True)
class ProcessOutput:
    """Result envelope for a finished process."""

    argv: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str


class ProcessRunner:
    """
    Runs a command to completion with a hard timeout.

    A missing executable surfaces as FileNotFoundError (or PermissionError
    when the file is not executable), exactly as the OS reports it.
    On timeout the child is killed and reaped before
    ProcessTimeoutError is raised, so no zombie outlives the run.
    """

    async def run(
        self,
        argv: list[str],
        *,
        input: Optional[bytes] = None,
        timeout: float,
        cwd: Optional[Path] = None,
    ) -> ProcessOutput:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
        )

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(input=input), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            raise ProcessTimeoutError(tuple(argv), timeout)
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        return ProcessOutput(
            argv=tuple(argv),
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass
        except Exception as e:
            get_logger().warning(f"Failed to kill process {process.pid}: {e}")
