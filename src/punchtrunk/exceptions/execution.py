"""External-process errors: tool failures, timeouts, missing executables."""

from typing import Optional, Sequence

from .base import PunchTrunkError


class ExecutionError(PunchTrunkError):
    """Base class for errors raised while running a stage."""

    pass


class ToolFailure(ExecutionError):
    """Raised when an external tool exits unsuccessfully."""

    def __init__(self, tool: str, returncode: int, stderr: str = ""):
        details = {"tool": tool, "returncode": str(returncode)}
        if stderr.strip():
            details["stderr"] = stderr.strip().splitlines()[-1]
        super().__init__(f"{tool} exited with status {returncode}", details=details)
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr


class ToolNotFound(ToolFailure):
    """Raised when an external tool cannot be located or launched."""

    def __init__(self, tool: str, reason: str):
        ExecutionError.__init__(
            self, f"{tool} is not available", details={"tool": tool, "reason": reason}
        )
        self.tool = tool
        self.returncode = 127
        self.stderr = ""
        self.reason = reason


class StageTimeout(ExecutionError):
    """Raised when the run deadline elapses or the run is cancelled."""

    def __init__(self, what: str, timeout_seconds: Optional[float] = None, command: Sequence[str] = ()):
        details = {"operation": what}
        if timeout_seconds is not None:
            details["timeout_seconds"] = f"{timeout_seconds:g}"
        if command:
            details["command"] = " ".join(command)
        super().__init__(f"Deadline exceeded during {what}", details=details)
        self.what = what
        self.timeout_seconds = timeout_seconds
        self.command = tuple(command)
