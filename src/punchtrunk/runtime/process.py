"""Run external commands under a cancellation token."""

from __future__ import annotations

import os
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from ..exceptions import StageTimeout, ToolNotFound
from ..logging_config import get_logger
from .cancellation import CancellationToken

logger = get_logger(__name__)

# How often a running process is checked against the token
_POLL_SECONDS = 0.1
# How long a signalled process gets to exit before it is killed
_TERMINATE_GRACE_SECONDS = 5.0


@dataclass
class CommandResult:
    """Outcome of a finished external command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(
    args: Sequence[str],
    token: CancellationToken,
    *,
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
    capture: bool = True,
    description: Optional[str] = None,
) -> CommandResult:
    """Run ``args`` to completion unless the token fires first.

    With ``capture=False`` the child's output streams straight to this
    process's stdout/stderr (used for the trunk stages so their output stays
    visible and unbuffered).

    On cancellation the child is asked to stop with SIGTERM and given a grace
    period to exit with its own status; only a child that ignores the request
    is killed. ``StageTimeout`` is raised in both cases.

    Raises:
        ToolNotFound: If the executable cannot be launched
        StageTimeout: If the token was cancelled before the child finished
    """
    args = tuple(str(a) for a in args)
    what = description or " ".join(args[:3])
    token.raise_if_cancelled(what)

    pipe = subprocess.PIPE if capture else None
    try:
        proc = subprocess.Popen(
            args,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            stdout=pipe,
            stderr=pipe,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
        )
    except FileNotFoundError as e:
        raise ToolNotFound(args[0], str(e)) from e
    except PermissionError as e:
        raise ToolNotFound(args[0], str(e)) from e

    stdout_parts: list[str] = []
    stderr_parts: list[str] = []
    while True:
        try:
            # communicate() may be retried after a timeout without losing output
            out, err = proc.communicate(timeout=_poll_interval(token))
            _collect(stdout_parts, stderr_parts, out, err)
            break
        except subprocess.TimeoutExpired:
            if token.cancelled:
                _stop(proc, what)
                raise StageTimeout(what, timeout_seconds=token.deadline.seconds, command=args)

    return CommandResult(
        args=args,
        returncode=proc.returncode,
        stdout="".join(stdout_parts),
        stderr="".join(stderr_parts),
    )


def _poll_interval(token: CancellationToken) -> float:
    remaining = token.remaining()
    if remaining is None:
        return _POLL_SECONDS
    return max(0.01, min(_POLL_SECONDS, remaining))


def _collect(stdout_parts: list, stderr_parts: list, out: Optional[str], err: Optional[str]) -> None:
    if out:
        stdout_parts.append(out)
    if err:
        stderr_parts.append(err)


def _stop(proc: subprocess.Popen, what: str) -> None:
    """Ask the child to exit; kill it only if it does not within the grace period."""
    logger.warning("Deadline reached, stopping %s (pid %d)", what, proc.pid)
    try:
        if os.name == "nt":
            proc.terminate()
        else:
            proc.send_signal(signal.SIGTERM)
        proc.communicate(timeout=_TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        logger.warning("%s ignored SIGTERM; killing pid %d", what, proc.pid)
        proc.kill()
        proc.communicate()
    except ProcessLookupError:
        pass
