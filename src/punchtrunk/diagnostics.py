"""Dry-run plans and offline-readiness diagnostics."""

from __future__ import annotations

import logging
import os
import shutil
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rich.console import Console

from .config import Phase, RunConfiguration
from .exceptions import InvalidPathError, ToolFailure
from .logging_config import get_logger, log_event
from .runtime import CancellationToken, Deadline, run_command
from .toolchain import (
    TrunkResolution,
    airgap_mode,
    discover_trunk_config,
    resolve_trunk,
    trunk_check_args,
    trunk_fmt_args,
    validate_trunk_binary,
)
from .toolchain.binary import trunk_executable_name

logger = get_logger(__name__)

STATUS_OK = "ok"
STATUS_WARN = "warn"
STATUS_ERROR = "error"

# Upper bound for ``trunk --version`` while diagnosing
_VERSION_PROBE_SECONDS = 30


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------


@dataclass
class PlannedStage:
    name: str
    command: list[str] = field(default_factory=list)
    description: str = ""


@dataclass
class DryRunPlan:
    """What a run would do, without executing anything."""

    trunk: TrunkResolution
    sarif_out: str
    trunk_args: list[str] = field(default_factory=list)
    env: list[str] = field(default_factory=list)
    stages: list[PlannedStage] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    def print(self, console: Console) -> None:
        console.print("Dry run summary (no commands executed)", markup=False)
        console.print()
        console.print(f"Trunk binary: {self.trunk.summary()}", markup=False, highlight=False)
        if self.env:
            console.print("Environment exports:")
            for kv in self.env:
                console.print(f"  {kv}", markup=False, highlight=False)
        if self.trunk_args:
            console.print(f"Additional trunk arguments: {', '.join(self.trunk_args)}", markup=False)
        console.print(f"SARIF output path: {self.sarif_out}", markup=False, highlight=False)
        console.print("Planned stages:")
        for idx, stage in enumerate(self.stages, 1):
            line = f"  {idx}. {stage.name}"
            if stage.command:
                line = f"{line} -> {' '.join(stage.command)}"
            console.print(line, markup=False, highlight=False)
            if stage.description:
                console.print(f"     {stage.description}", markup=False, highlight=False)
        for title, items in (("Warnings", self.warnings), ("Notes", self.notes)):
            if items:
                console.print()
                console.print(f"{title}:")
                for item in items:
                    console.print(f"  - {item}", markup=False, highlight=False)


def build_dry_run_plan(config: RunConfiguration, resolution: Optional[TrunkResolution] = None) -> DryRunPlan:
    resolution = resolution if resolution is not None else resolve_trunk(config.trunk_binary)
    plan = DryRunPlan(
        trunk=resolution,
        sarif_out=str(config.resolve_sarif_out()),
        trunk_args=list(config.trunk_args),
        warnings=list(resolution.warnings),
    )

    trunk_config = discover_trunk_config(config.root_path, config.trunk_config_dir)
    if trunk_config is not None and not os.environ.get("TRUNK_CONFIG_DIR"):
        plan.env.append(f"TRUNK_CONFIG_DIR={trunk_config.directory}")

    display = str(resolution.path) if resolution.path else trunk_executable_name()
    for phase in config.phases:
        if phase is Phase.FORMAT:
            plan.stages.append(
                PlannedStage("format", [display, *trunk_fmt_args(config.trunk_args)], "format code via trunk fmt")
            )
        elif phase is Phase.CHECK:
            plan.stages.append(
                PlannedStage(
                    "check",
                    [display, *trunk_check_args(config.autofix, config.trunk_args)],
                    f"run trunk lint checks (autofix: {config.autofix.value})",
                )
            )
        else:
            plan.stages.append(
                PlannedStage(
                    "hotspots",
                    description=(
                        f"compute hotspots over {config.churn_window_days} days against "
                        f"{config.base_ref} and write SARIF to {plan.sarif_out}"
                    ),
                )
            )

    if not resolution.available and any(p is not Phase.HOTSPOTS for p in config.phases):
        plan.warnings.append("trunk is not available; format and check stages would fail")
    plan.notes.append("No commands executed because --dry-run is enabled.")

    log_event(
        logger,
        logging.INFO,
        "dryrun.plan",
        stage_count=len(plan.stages),
        trunk_status="available" if resolution.available else "missing",
    )
    return plan


# ---------------------------------------------------------------------------
# Diagnose
# ---------------------------------------------------------------------------


@dataclass
class DiagnoseCheck:
    name: str
    status: str
    message: str
    recommendation: str = ""


@dataclass
class DiagnoseReport:
    timestamp: str
    airgapped: bool
    sarif_out: str
    checks: list[DiagnoseCheck] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        counts = {"total": len(self.checks), "ok": 0, "warn": 0, "error": 0}
        for check in self.checks:
            counts[check.status] += 1
        return counts

    @property
    def has_errors(self) -> bool:
        return any(check.status == STATUS_ERROR for check in self.checks)

    def to_dict(self) -> dict:
        data = asdict(self)
        for check in data["checks"]:
            if not check["recommendation"]:
                del check["recommendation"]
        data["summary"] = self.summary
        return data


def diagnose(config: RunConfiguration) -> DiagnoseReport:
    """Check git, trunk, airgap env and the findings directory."""
    sarif_out = config.resolve_sarif_out()
    report = DiagnoseReport(
        timestamp=datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
        airgapped=airgap_mode(),
        sarif_out=str(sarif_out),
    )
    report.checks.append(check_git_executable())
    report.checks.append(check_trunk_binary(config))
    report.checks.append(check_airgap_env())
    report.checks.append(check_sarif_out(sarif_out))
    return report


def check_git_executable() -> DiagnoseCheck:
    path = shutil.which("git")
    if path is None:
        return DiagnoseCheck(
            "git",
            STATUS_ERROR,
            "git executable not found in PATH",
            "Install git and ensure it is available to PunchTrunk.",
        )
    return DiagnoseCheck("git", STATUS_OK, f"git found at {path}")


def check_trunk_binary(config: RunConfiguration) -> DiagnoseCheck:
    name = "trunk_binary"
    sources = []
    for raw in (config.trunk_binary, os.environ.get("PUNCHTRUNK_TRUNK_BINARY", "").strip()):
        if raw and raw not in sources:
            sources.append(raw)

    last_failure = None
    for source in sources:
        try:
            resolved = validate_trunk_binary(source)
        except InvalidPathError as e:
            last_failure = DiagnoseCheck(
                name,
                STATUS_ERROR,
                f"trunk binary {source} is invalid: {e.reason}",
                "Provide a valid trunk executable via --trunk-binary or PUNCHTRUNK_TRUNK_BINARY.",
            )
            continue

        message = f"resolved trunk executable at {resolved}"
        try:
            version = probe_trunk_version(resolved)
        except ToolFailure as e:
            return DiagnoseCheck(
                name,
                STATUS_WARN,
                f"{message} but '--version' failed: {e}",
                "Verify the trunk binary runs without network access.",
            )
        return DiagnoseCheck(name, STATUS_OK, f"{message} (version: {version or 'unknown version'})")

    if last_failure is not None:
        return last_failure

    candidate = Path.home() / ".trunk" / "bin" / trunk_executable_name()
    try:
        resolved = validate_trunk_binary(candidate)
    except InvalidPathError:
        pass
    else:
        return DiagnoseCheck(
            name,
            STATUS_WARN,
            f"found trunk at {resolved} but PUNCHTRUNK_TRUNK_BINARY is not set",
            "Export PUNCHTRUNK_TRUNK_BINARY or use --trunk-binary.",
        )

    on_path = shutil.which(trunk_executable_name())
    if on_path is not None:
        return DiagnoseCheck(
            name,
            STATUS_WARN,
            f"found trunk on PATH at {on_path} but no explicit binary is configured",
            "Pin the binary with PUNCHTRUNK_TRUNK_BINARY for reproducible offline runs.",
        )
    return DiagnoseCheck(
        name,
        STATUS_ERROR,
        "no trunk binary detected",
        "Set PUNCHTRUNK_TRUNK_BINARY or pass --trunk-binary pointing at a local trunk install.",
    )


def probe_trunk_version(binary: Path) -> str:
    """First line of ``trunk --version``.

    Raises:
        ToolFailure: If the binary cannot run or exits non-zero
    """
    token = CancellationToken(Deadline(_VERSION_PROBE_SECONDS))
    env = dict(os.environ)
    env["TRUNK_TELEMETRY_OPTOUT"] = "1"
    result = run_command([str(binary), "--version"], token, env=env, description="trunk --version")
    if not result.ok:
        raise ToolFailure("trunk --version", result.returncode, result.stderr or result.stdout)
    lines = result.stdout.strip().splitlines()
    return lines[0].strip() if lines else ""


def check_airgap_env() -> DiagnoseCheck:
    if airgap_mode():
        return DiagnoseCheck("airgap_env", STATUS_OK, "PUNCHTRUNK_AIRGAPPED is enabled")
    return DiagnoseCheck(
        "airgap_env",
        STATUS_WARN,
        "PUNCHTRUNK_AIRGAPPED is not set",
        "Export PUNCHTRUNK_AIRGAPPED=1 when running without network access.",
    )


def check_sarif_out(sarif_out: Path) -> DiagnoseCheck:
    name = "sarif_out"
    directory = sarif_out.parent
    if not directory.exists():
        return DiagnoseCheck(
            name,
            STATUS_WARN,
            f"directory {directory} does not exist",
            "It will be created on write; point --sarif-out elsewhere if that is not possible.",
        )
    if not directory.is_dir():
        return DiagnoseCheck(
            name,
            STATUS_ERROR,
            f"{directory} is not a directory",
            "Adjust --sarif-out to target a directory path.",
        )

    probe = directory / f".punchtrunk-diagnose-{time.time_ns()}"
    try:
        probe.write_text("diagnostic", encoding="utf-8")
    except OSError as e:
        return DiagnoseCheck(
            name,
            STATUS_ERROR,
            f"failed to write to {directory}: {e}",
            "Adjust permissions or configure --tmp-dir so the fallback location is writable.",
        )
    try:
        probe.unlink()
    except OSError as e:
        logger.warning("Unable to clean up diagnostic file %s: %s", probe, e)
    return DiagnoseCheck(name, STATUS_OK, f"verified write access to {directory}")
