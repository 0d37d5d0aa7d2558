from typing import Optional, Sequence


class GraphError(Exception):
    """Base class for history graph failures."""


class ExecutionError(GraphError):
    """A git command could not be run or exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        args: Sequence[str] = (),
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr


class CommandTimeoutError(ExecutionError, TimeoutError):
    """A git command exceeded its time budget and was killed."""


class ParseError(GraphError, ValueError):
    """A log record could not be turned into a CommitRecord."""
