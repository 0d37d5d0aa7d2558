import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Sequence, Union

from src.history.errors import CommandTimeoutError, ExecutionError

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 20.0

Runner = Callable[[Sequence[str], Union[str, Path]], Awaitable[str]]


async def run_git(
    args: Sequence[str], cwd: Union[str, Path], timeout: float = GIT_TIMEOUT
) -> str:
    """Run ``git <args>`` in ``cwd`` and return its stdout as text."""
    cmd = ["git", *args]
    logger.debug("Running %s in %s", cmd, cwd)
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ExecutionError(f"Could not run git: {e}", args=cmd) from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError:
        _kill(proc)
        await proc.wait()
        raise CommandTimeoutError(
            f"git {' '.join(args)} timed out after {timeout:g}s",
            args=cmd,
            returncode=proc.returncode,
        )
    except asyncio.CancelledError:
        _kill(proc)
        raise

    stderr_text = stderr.decode("utf-8", errors="replace")
    if proc.returncode != 0:
        raise ExecutionError(
            stderr_text.strip() or f"git exited with status {proc.returncode}",
            args=cmd,
            returncode=proc.returncode,
            stderr=stderr_text,
        )
    return stdout.decode("utf-8", errors="replace")


def _kill(proc):
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
