"""Run ``trunk fmt`` and ``trunk check`` for the orchestrator."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from ..config import Phase, RunConfiguration
from ..exceptions import ToolFailure, ToolNotFound
from ..logging_config import get_logger
from ..runtime import CancellationToken, CommandResult, run_command
from .binary import TrunkResolution, resolve_trunk
from .commands import CompetingToolNotifier, trunk_check_args, trunk_env, trunk_fmt_args
from .trunk_config import TrunkConfig, discover_trunk_config, trunk_version_matches

logger = get_logger(__name__)


class TrunkRunner:
    """Invoke trunk in the repository root with the run's policy applied."""

    def __init__(
        self,
        config: RunConfiguration,
        resolution: Optional[TrunkResolution] = None,
        trunk_config: Optional[TrunkConfig] = None,
        notifier: Optional[CompetingToolNotifier] = None,
    ):
        self.config = config
        self.resolution = resolution if resolution is not None else resolve_trunk(config.trunk_binary)
        self.trunk_config = (
            trunk_config
            if trunk_config is not None
            else discover_trunk_config(config.root_path, config.trunk_config_dir)
        )
        self.notifier = notifier or CompetingToolNotifier()
        self._version_checked = False

        for warning in self.resolution.warnings:
            logger.warning("%s", warning)

    @property
    def binary(self) -> str:
        if self.resolution.path is None:
            raise ToolNotFound("trunk", self.resolution.summary())
        return str(self.resolution.path)

    def env(self) -> dict[str, str]:
        config_dir = self.trunk_config.directory if self.trunk_config else None
        return trunk_env(os.environ, config_dir)

    def command_for(self, phase: Phase) -> list[str]:
        if phase is Phase.FORMAT:
            args = trunk_fmt_args(self.config.trunk_args)
        elif phase is Phase.CHECK:
            args = trunk_check_args(self.config.autofix, self.config.trunk_args)
        else:
            raise ValueError(f"trunk does not run phase {phase.value}")
        return [self.binary, *args]

    def version(self, token: CancellationToken) -> str:
        result = run_command(
            [self.binary, "--version"],
            token,
            cwd=self.config.root_path,
            env=self.env(),
            description="trunk --version",
        )
        if not result.ok:
            raise ToolFailure("trunk --version", result.returncode, result.stderr)
        return result.stdout.strip()

    def run(self, phase: Phase, token: CancellationToken) -> CommandResult:
        """Run one trunk phase; output streams straight to the terminal.

        Raises:
            ToolNotFound: If no trunk binary was resolved
            ToolFailure: On a non-zero exit
            StageTimeout: If the token is cancelled first
        """
        command = self.command_for(phase)
        self.notifier.notify(phase, self.config.root_path)
        self._check_version(token)

        result = run_command(
            command,
            token,
            cwd=self.config.root_path,
            env=self.env(),
            capture=False,
            description=f"trunk {phase.value}",
        )
        if not result.ok:
            raise ToolFailure(f"trunk {command[1]}", result.returncode, result.stderr)
        return result

    def _check_version(self, token: CancellationToken) -> None:
        if self._version_checked or self.trunk_config is None or not self.trunk_config.cli_version:
            return
        self._version_checked = True
        try:
            actual = self.version(token)
        except ToolFailure as e:
            logger.debug("Could not determine trunk version: %s", e)
            return
        if not trunk_version_matches(self.trunk_config.cli_version, actual):
            logger.warning(
                "trunk.yaml pins cli.version %s but %s reports %s",
                self.trunk_config.cli_version,
                Path(self.binary).name,
                actual,
            )
