"""
External Processes
==================

Run an external program to completion and collect its output.

Both output streams are drained while the process runs, so a chatty
program (ffmpeg with ``-progress pipe:1``) can never block on a full pipe.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from canvas_video.errors import ProcessError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Completed process output."""

    args: tuple
    returncode: int
    stdout: str
    stderr: str


async def run_process(
    args: Sequence[str],
    timeout: Optional[float] = None,
    check: bool = True,
) -> ProcessResult:
    """
    Run a process and wait for it to exit.

    Args:
        args: Program and arguments (no shell)
        timeout: Seconds before the process is killed. None or 0 waits forever.
        check: Raise ProcessError on a nonzero exit code

    Returns:
        ProcessResult with decoded stdout and stderr

    Raises:
        ProcessError: If the program cannot be started, times out, or
            (with check=True) exits with a nonzero code
    """
    args = tuple(str(arg) for arg in args)
    logger.debug(f"Running: {' '.join(args)}")

    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ProcessError(f"Could not start {args[0]}: {e}")

    try:
        if timeout:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        else:
            stdout, stderr = await proc.communicate()
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise ProcessError(f"{args[0]} timed out after {timeout:.0f}s")
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise

    result = ProcessResult(
        args=args,
        returncode=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )

    if check and result.returncode != 0:
        raise ProcessError(
            f"{args[0]} exited with code {result.returncode}",
            returncode=result.returncode,
            stderr=result.stderr,
        )

    return result
