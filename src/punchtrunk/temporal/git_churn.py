"""Collect per-file churn and the changed set from git."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

from ..exceptions import HistoryUnavailable, ToolFailure, ToolNotFound
from ..logging_config import get_logger
from ..runtime import CancellationToken, CommandResult, run_command
from .models import ChurnReport

logger = get_logger(__name__)

# stderr fragments git prints when the history we asked for does not exist
_NO_HISTORY_MARKERS = (
    "does not have any commits yet",
    "bad revision",
    "unknown revision",
    "no such ref",
    "shallow updates were not allowed",
    "not a git repository",
)

# stderr fragments meaning a diff reference cannot be resolved
_BAD_REF_MARKERS = (
    "bad revision",
    "unknown revision",
    "ambiguous argument",
    "no such ref",
)


def is_no_history(stderr: str) -> bool:
    lowered = stderr.lower()
    return any(marker in lowered for marker in _NO_HISTORY_MARKERS)


def normalize_path(path: str) -> str:
    """Repo-relative path with forward slashes."""
    path = path.strip().replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


def parse_numstat(output: str) -> dict[str, int]:
    """Sum ``git log --numstat`` lines into per-file churn.

    Lines are ``added<TAB>removed<TAB>path``. Binary files report ``-`` for both
    counts and contribute zero churn. Malformed lines are skipped.
    """
    churn: dict[str, int] = {}
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) != 3:
            continue
        added, removed, path = parts
        path = normalize_path(path)
        if not path:
            continue
        if added == "-" or removed == "-":
            continue
        try:
            count = int(added) + int(removed)
        except ValueError:
            continue
        if count > 0:
            churn[path] = churn.get(path, 0) + count
    return churn


def parse_name_only(output: str) -> set[str]:
    """Parse ``git diff --name-only`` output into a path set."""
    return {normalize_path(line) for line in output.splitlines() if line.strip()}


class GitChurnCollector:
    """Read-only churn queries against one repository.

    Every git invocation observes the token passed to ``collect``.
    """

    def __init__(self, repo_root: str | Path, window_days: int = 90, base_ref: Optional[str] = "origin/main"):
        self.repo_root = Path(repo_root).resolve()
        self.window_days = window_days
        self.base_ref = base_ref.strip() if base_ref else ""

    def collect(self, token: CancellationToken) -> ChurnReport:
        """Produce churn for the window plus the changed set.

        Raises:
            HistoryUnavailable: If history cannot cover the window
            ToolFailure: If git fails for another reason
            StageTimeout: If the token fires
        """
        self._ensure_history(token)
        churn = self.collect_churn(token)
        changed, degraded = self.collect_changed(token)
        logger.debug(
            "Collected churn for %d files (%d changed vs %s)",
            len(churn),
            len(changed),
            self.base_ref or "HEAD~1",
        )
        return ChurnReport(
            churn=churn,
            changed=changed,
            window_days=self.window_days,
            degraded=degraded,
        )

    def collect_churn(self, token: CancellationToken) -> dict[str, int]:
        result = self._git(
            token,
            "log",
            f"--since={self.window_days} days",
            "--numstat",
            "--no-renames",
            "--format=tformat:",
            "HEAD",
        )
        if not result.ok:
            if is_no_history(result.stderr):
                raise HistoryUnavailable(result.stderr.strip() or "git log found no history", self.repo_root)
            raise ToolFailure("git log", result.returncode, result.stderr)
        return parse_numstat(result.stdout)

    def collect_changed(self, token: CancellationToken) -> tuple[set[str], bool]:
        """Files differing from the base reference.

        Falls back to the last commit when the base reference cannot be
        resolved. Returns ``(paths, degraded)``; an unresolvable diff yields an
        empty set rather than an error.
        """
        attempts: list[tuple[str, ...]] = []
        if self.base_ref:
            attempts.append(("diff", "--name-only", f"{self.base_ref}...HEAD"))
        attempts.append(("diff", "--name-only", "HEAD~1...HEAD"))
        attempts.append(("diff", "--name-only", "HEAD^..HEAD"))

        degraded = False
        last: Optional[CommandResult] = None
        for args in attempts:
            result = self._git(token, *args)
            if result.ok:
                if degraded:
                    logger.info("Changed set computed from %s; diff weighting may be incomplete", args[-1])
                return parse_name_only(result.stdout), degraded
            degraded = True
            last = result
            logger.debug("git %s failed: %s", " ".join(args), result.stderr.strip())

        if last is not None and not any(m in last.stderr.lower() for m in _BAD_REF_MARKERS):
            logger.warning("Unable to resolve changed files: %s", last.stderr.strip())
        return set(), True

    def head_commit(self, token: CancellationToken) -> Optional[str]:
        result = self._git(token, "rev-parse", "--verify", "-q", "HEAD")
        return result.stdout.strip() if result.ok else None

    def resolve_ref(self, token: CancellationToken, ref: str) -> Optional[str]:
        result = self._git(token, "rev-parse", "--verify", "-q", f"{ref}^{{commit}}")
        return result.stdout.strip() if result.ok else None

    def _ensure_history(self, token: CancellationToken) -> None:
        """Raise ``HistoryUnavailable`` unless history covers the window."""
        inside = self._git(token, "rev-parse", "--is-inside-work-tree")
        if not inside.ok or inside.stdout.strip() != "true":
            raise HistoryUnavailable("not a git work tree", self.repo_root)

        if self.head_commit(token) is None:
            raise HistoryUnavailable("repository has no commits yet", self.repo_root)

        shallow = self._git(token, "rev-parse", "--is-shallow-repository")
        if shallow.ok and shallow.stdout.strip() == "true":
            boundary = self._shallow_boundary_timestamp(token)
            window_start = time.time() - self.window_days * 86400
            if boundary is None or boundary > window_start:
                raise HistoryUnavailable(
                    f"shallow clone does not reach back {self.window_days} days", self.repo_root
                )
            logger.debug("Shallow clone covers the %d day window", self.window_days)

    def _shallow_boundary_timestamp(self, token: CancellationToken) -> Optional[int]:
        """Newest commit time among the shallow boundary commits."""
        path_result = self._git(token, "rev-parse", "--git-path", "shallow")
        if not path_result.ok:
            return None
        shallow_file = Path(path_result.stdout.strip())
        if not shallow_file.is_absolute():
            shallow_file = self.repo_root / shallow_file
        try:
            shas = [line.strip() for line in shallow_file.read_text().splitlines() if line.strip()]
        except OSError:
            return None
        if not shas:
            return None

        result = self._git(token, "show", "-s", "--format=%ct", *shas)
        if not result.ok:
            return None
        stamps = [int(line) for line in result.stdout.split() if line.isdigit()]
        return max(stamps) if stamps else None

    def _git(self, token: CancellationToken, *args: str) -> CommandResult:
        try:
            return run_command(
                ["git", "-C", str(self.repo_root), "-c", "core.quotepath=false", *args],
                token,
                description=f"git {args[0]}",
            )
        except ToolNotFound as e:
            raise HistoryUnavailable("git executable not found", self.repo_root) from e
