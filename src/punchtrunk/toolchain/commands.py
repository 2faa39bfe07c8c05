"""Build trunk invocations and warn about overlapping tool configs."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from ..config import AutofixPolicy, Phase
from ..logging_config import get_logger

logger = get_logger(__name__)


def trunk_fmt_args(extra: Sequence[str] = ()) -> list[str]:
    return ["fmt", *extra]


def trunk_check_args(autofix: AutofixPolicy, extra: Sequence[str] = ()) -> list[str]:
    args = ["check"]
    if autofix is AutofixPolicy.ALL:
        args.append("--fix")
    elif autofix is AutofixPolicy.NONE:
        args.append("--no-fix")
    return [*args, *extra]


def trunk_env(base: Mapping[str, str], config_dir: Optional[Path] = None) -> dict[str, str]:
    """Child environment; an explicit ``TRUNK_CONFIG_DIR`` in ``base`` wins."""
    env = dict(base)
    if config_dir is not None and not env.get("TRUNK_CONFIG_DIR"):
        env["TRUNK_CONFIG_DIR"] = str(config_dir)
    env.setdefault("TRUNK_TELEMETRY_OPTOUT", "1")
    return env


@dataclass(frozen=True)
class CompetingTool:
    tool: str
    files: tuple[str, ...]
    advice: str
    validate: Optional[Callable[[Path], bool]] = None


def _pyproject_configures_black(path: Path) -> bool:
    if path.name != "pyproject.toml":
        return True
    try:
        return "[tool.black]" in path.read_text(encoding="utf-8", errors="replace").lower()
    except OSError:
        return False


COMPETING_TOOLS: dict[Phase, tuple[CompetingTool, ...]] = {
    Phase.FORMAT: (
        CompetingTool(
            "Prettier",
            (".prettierrc", ".prettierrc.json", ".prettierrc.yml", ".prettierrc.yaml",
             ".prettierrc.js", ".prettierrc.cjs", "prettier.config.js", "prettier.config.cjs"),
            "Detected formatting config; ensure Trunk formatters and Prettier do not both rewrite the same files.",
        ),
        CompetingTool(
            "Black",
            ("pyproject.toml", "black.toml"),
            "Detected Python formatting config; coordinate with Trunk's Python formatters or scope them via --trunk-arg.",
            validate=_pyproject_configures_black,
        ),
        CompetingTool(
            "clang-format",
            (".clang-format",),
            "Detected clang-format configuration; align Trunk's C/C++ formatters to avoid double application.",
        ),
        CompetingTool(
            "SwiftFormat",
            (".swiftformat",),
            "Detected Swift formatting config; limit Trunk formatters if SwiftFormat already runs in CI.",
        ),
    ),
    Phase.CHECK: (
        CompetingTool(
            "ESLint",
            (".eslintrc", ".eslintrc.json", ".eslintrc.js", ".eslintrc.cjs", ".eslint.config.js"),
            "Detected ESLint config; coordinate with Trunk lint execution to avoid duplicate diagnostics.",
        ),
        CompetingTool(
            "Stylelint",
            (".stylelintrc", ".stylelintrc.json", ".stylelintrc.yaml", ".stylelintrc.yml"),
            "Detected Stylelint config; ensure Trunk lint definitions do not conflict.",
        ),
        CompetingTool(
            "Pylint/Flake8",
            (".pylintrc", ".flake8"),
            "Detected Python linter config; configure Trunk accordingly or disable redundant runners.",
        ),
        CompetingTool(
            "Rubocop",
            (".rubocop.yml",),
            "Detected Rubocop config; avoid double-running Ruby lint via both Trunk and native tooling.",
        ),
    ),
}


def detect_competing_tools(phase: Phase, root: Path) -> list[str]:
    """Messages for tool configs in ``root`` that overlap with the phase."""
    messages = []
    for definition in COMPETING_TOOLS.get(phase, ()):
        hits = []
        for rel in definition.files:
            path = root / rel
            if not path.exists():
                continue
            if definition.validate is not None and not definition.validate(path):
                continue
            hits.append(rel)
        if hits:
            messages.append(f"Detected {definition.tool} configuration ({', '.join(hits)}). {definition.advice}")
    return messages


class CompetingToolNotifier:
    """Log each overlap message once per run, plus one line of guidance."""

    def __init__(self):
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def notify(self, phase: Phase, root: Path) -> list[str]:
        with self._lock:
            new = [m for m in detect_competing_tools(phase, root) if m not in self._seen]
            if not new:
                return []
            first = not self._seen
            self._seen.update(new)
        for message in new:
            logger.info("%s", message)
        if first:
            logger.info(
                "Use --trunk-config-dir to point at the desired Trunk config or repeat "
                "--trunk-arg to forward filters that avoid tool overlap."
            )
        return new
