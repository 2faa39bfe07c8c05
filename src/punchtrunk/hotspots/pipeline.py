"""Hotspot pipeline: collect, estimate, rank, write."""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..cache import ChurnCache, churn_cache_key
from ..config import RunConfiguration
from ..formatters.sarif_formatter import FindingsWriter, WriteResult
from ..logging_config import get_logger
from ..runtime import CancellationToken
from ..scanning import ComplexityEstimator
from ..temporal import ChurnReport, GitChurnCollector
from .ranker import HotspotCandidate, rank_hotspots

logger = get_logger(__name__)


@dataclass
class HotspotResult:
    """What one hotspots stage produced."""

    candidates: list[HotspotCandidate]
    write: WriteResult
    churned_files: int
    scanned_files: int
    skipped_files: int = 0


class HotspotPipeline:
    """Churn collection and complexity scan in parallel, then rank and write.

    ``HistoryUnavailable`` from the collector propagates unchanged so the
    orchestrator can degrade; nothing is written in that case.
    """

    def __init__(
        self,
        config: RunConfiguration,
        collector: Optional[GitChurnCollector] = None,
        estimator: Optional[ComplexityEstimator] = None,
        writer: Optional[FindingsWriter] = None,
        cache: Optional[ChurnCache] = None,
    ):
        root = config.root_path
        self.config = config
        self.collector = collector or GitChurnCollector(
            root, window_days=config.churn_window_days, base_ref=config.base_ref
        )
        self.estimator = estimator or ComplexityEstimator(
            root,
            exclude_dirs=config.exclude_dirs,
            max_file_size_bytes=config.max_file_size_bytes,
        )
        self.writer = writer or FindingsWriter(fallback_base=config.resolve_tmp_dir)
        self.cache = cache

    def run(self, token: CancellationToken) -> HotspotResult:
        """Compute and write hotspots.

        Raises:
            HistoryUnavailable: If git history cannot cover the window
            ToolFailure: If git fails otherwise
            StageTimeout: If the token fires
        """
        scan_token = token.child()
        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
            churn_future = executor.submit(self._collect_churn, scan_token)
            complexity_future = executor.submit(self.estimator.estimate, scan_token)
            try:
                report = churn_future.result()
            except BaseException:
                # Stop the sibling scan before leaving the executor
                scan_token.cancel()
                raise
            complexity = complexity_future.result()

        churn = self._present_in_tree(report)
        if not churn:
            logger.info("No git churn in the last %d days; hotspot report will be empty", report.window_days)

        candidates = rank_hotspots(
            churn,
            complexity,
            changed=report.changed,
            max_results=self.config.max_results,
        )
        token.raise_if_cancelled("findings write")
        write = self.writer.write(candidates, self.config.resolve_sarif_out())
        return HotspotResult(
            candidates=candidates,
            write=write,
            churned_files=len(churn),
            scanned_files=len(complexity),
            skipped_files=len(self.estimator.skipped),
        )

    def _collect_churn(self, token: CancellationToken) -> ChurnReport:
        if self.cache is None or not self.cache.enabled:
            return self.collector.collect(token)

        head = self.collector.head_commit(token)
        if head is None:
            return self.collector.collect(token)
        base = self.collector.resolve_ref(token, self.config.base_ref)
        key = churn_cache_key(self.collector.repo_root, head, base, self.config.churn_window_days)

        cached = self.cache.get(key)
        if cached is not None:
            return cached
        report = self.collector.collect(token)
        self.cache.set(key, report)
        return report

    def _present_in_tree(self, report: ChurnReport) -> dict[str, int]:
        """Drop churned paths deleted from the working tree."""
        root = Path(self.collector.repo_root)
        kept = {path: count for path, count in report.churn.items() if (root / path).is_file()}
        dropped = len(report.churn) - len(kept)
        if dropped:
            logger.debug("Ignoring %d churned paths no longer in the working tree", dropped)
        return kept
