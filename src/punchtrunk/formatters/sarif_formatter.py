"""SARIF 2.1.0 findings document for hotspot candidates."""

from __future__ import annotations

import errno
import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

from .. import __version__
from ..exceptions import OutputUnwritable
from ..hotspots.ranker import HotspotCandidate
from ..logging_config import get_logger

logger = get_logger(__name__)

SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = "https://schemastore.azurewebsites.net/schemas/json/sarif-2.1.0-rtm.5.json"
TOOL_NAME = "PunchTrunk"
TOOL_URI = "https://docs.trunk.io/"
RULE_ID = "hotspot"
LEVEL = "note"

_READ_ONLY_ERRNOS = frozenset({errno.EACCES, errno.EPERM, errno.EROFS})


def hotspot_message(candidate: HotspotCandidate) -> str:
    return (
        f"Hotspot candidate: churn={candidate.churn}, "
        f"complexity={candidate.complexity:.2f}, score={candidate.score:.2f}"
    )


def build_sarif_document(candidates: Sequence[HotspotCandidate]) -> dict[str, Any]:
    """One run, one result per candidate, in the given (ranked) order."""
    results = [
        {
            "ruleId": RULE_ID,
            "level": LEVEL,
            "message": {"text": hotspot_message(c)},
            "locations": [
                {
                    "physicalLocation": {
                        "artifactLocation": {"uri": c.path.replace("\\", "/")},
                    }
                }
            ],
        }
        for c in candidates
    ]
    return {
        "version": SARIF_VERSION,
        "$schema": SARIF_SCHEMA,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": TOOL_NAME,
                        "version": __version__,
                        "informationUri": TOOL_URI,
                        "rules": [
                            {
                                "id": RULE_ID,
                                "name": "Hotspot",
                                "shortDescription": {
                                    "text": "File with high recent churn and dense code",
                                },
                                "defaultConfiguration": {"level": LEVEL},
                            }
                        ],
                    }
                },
                "results": results,
            }
        ],
    }


def is_permission_or_read_only(err: OSError) -> bool:
    if isinstance(err, PermissionError) or err.errno in _READ_ONLY_ERRNOS:
        return True
    return "read-only" in str(err).lower()


@dataclass
class WriteResult:
    """Where the document ended up."""

    path: Path
    requested: Path
    count: int

    @property
    def fell_back(self) -> bool:
        return self.path != self.requested


class FindingsWriter:
    """Serialize candidates and write them in one operation.

    When the requested directory is not writable the document goes to
    ``<tmp>/punchtrunk/reports/<filename>`` instead.
    """

    def __init__(self, fallback_base: Optional[Union[Path, Callable[[], Path]]] = None):
        self._fallback_base = fallback_base

    def fallback_path(self, requested: Path) -> Path:
        base = self._fallback_base
        if callable(base):
            base = base()
        if base is None:
            base = Path(tempfile.gettempdir())
        return Path(base) / "punchtrunk" / "reports" / requested.name

    def write(self, candidates: Sequence[HotspotCandidate], requested: Path) -> WriteResult:
        """Write the document and return the path actually used.

        Raises:
            OutputUnwritable: If neither the requested nor the fallback
                location can be written
        """
        requested = Path(requested)
        payload = json.dumps(build_sarif_document(candidates), indent=2) + "\n"

        try:
            self._write_to(requested, payload)
            return WriteResult(path=requested, requested=requested, count=len(candidates))
        except OutputUnwritable as e:
            fallback = self.fallback_path(requested)
            logger.warning(
                "Unable to write findings to %s (%s); writing to %s instead",
                requested,
                e.reason,
                fallback,
            )

        self._write_to(fallback, payload)
        return WriteResult(path=fallback, requested=requested, count=len(candidates))

    @staticmethod
    def _write_to(path: Path, payload: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(payload, encoding="utf-8")
        except OSError as e:
            if is_permission_or_read_only(e):
                raise OutputUnwritable(path, str(e)) from e
            raise
