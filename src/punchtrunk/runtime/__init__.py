"""Deadline, cancellation and subprocess execution."""

from .cancellation import CancellationToken, Deadline
from .process import CommandResult, run_command

__all__ = ["CancellationToken", "Deadline", "CommandResult", "run_command"]
