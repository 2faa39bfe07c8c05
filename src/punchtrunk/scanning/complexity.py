"""Lexical-density complexity proxy for working-tree files."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Sequence

from ..exceptions import MalformedInput
from ..logging_config import get_logger
from ..runtime import CancellationToken
from .text_files import is_text_file

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileComplexityRecord:
    path: str  # repo-relative, forward slashes
    complexity: float  # tokens per non-blank line


def lexical_density(text: str) -> float:
    """Tokens per non-blank line.

    A token is a maximal run of non-whitespace characters. This is a cheap
    stand-in for structural complexity, not a real metric.
    """
    tokens = len(text.split())
    non_blank = sum(1 for line in text.splitlines() if line.strip())
    return tokens / max(1, non_blank)


class ComplexityEstimator:
    """Walk the working tree and score every text file."""

    def __init__(
        self,
        root: str | Path,
        exclude_dirs: Sequence[str] = (".git",),
        max_file_size_bytes: int = 1024 * 1024,
    ):
        self.root = Path(root).resolve()
        self.exclude_dirs = frozenset(exclude_dirs)
        self.max_file_size_bytes = max_file_size_bytes
        self.skipped: list[MalformedInput] = []

    def estimate(self, token: CancellationToken) -> dict[str, float]:
        """Map of repo-relative path -> lexical density.

        Raises:
            StageTimeout: If the token fires mid-scan
        """
        results: dict[str, float] = {}
        for path in self.iter_files(token):
            record = self.estimate_file(path)
            if record is not None:
                results[record.path] = record.complexity
        logger.debug("Estimated complexity for %d files (%d skipped)", len(results), len(self.skipped))
        return results

    def estimate_file(self, path: Path) -> Optional[FileComplexityRecord]:
        """Score one file; unreadable files are recorded and skipped."""
        rel = path.relative_to(self.root).as_posix()
        try:
            if path.stat().st_size > self.max_file_size_bytes:
                return None
            if not is_text_file(path):
                return None
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            skipped = MalformedInput(Path(rel), str(e))
            self.skipped.append(skipped)
            logger.warning("Skipping %s: %s", rel, e)
            return None
        return FileComplexityRecord(path=rel, complexity=lexical_density(text))

    def iter_files(self, token: CancellationToken) -> Iterator[Path]:
        """Regular files under the root, excluded directories pruned."""
        for dirpath, dirnames, filenames in os.walk(self.root):
            token.raise_if_cancelled("complexity scan")
            dirnames[:] = sorted(d for d in dirnames if d not in self.exclude_dirs)
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if path.is_file() and not path.is_symlink():
                    yield path
