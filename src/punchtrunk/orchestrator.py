"""RunOrchestrator: sequence format, check and hotspots under one deadline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol

from .cache import ChurnCache
from .config import Phase, RunConfiguration
from .exceptions import HistoryUnavailable, PunchTrunkError, StageTimeout
from .hotspots import HotspotPipeline, HotspotResult
from .logging_config import get_logger, log_event
from .runtime import CancellationToken, Deadline
from .toolchain import TrunkRunner

ProgressCallback = Optional[Callable[[str], None]]

logger = get_logger(__name__)


class StageStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    DEGRADED = "degraded"
    SKIPPED = "skipped"


@dataclass
class StageOutcome:
    """Result of one stage."""

    phase: Phase
    status: StageStatus
    duration_seconds: float = 0.0
    detail: str = ""
    hotspots: Optional[HotspotResult] = None

    @property
    def counts_as_failure(self) -> bool:
        return self.status in (StageStatus.FAILED, StageStatus.TIMED_OUT)


@dataclass
class RunOutcome:
    """Every stage's result, reduced to one exit status."""

    stages: list[StageOutcome] = field(default_factory=list)
    degraded: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not any(stage.counts_as_failure for stage in self.stages)

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    @property
    def timed_out(self) -> bool:
        return any(stage.status is StageStatus.TIMED_OUT for stage in self.stages)

    @property
    def hotspots(self) -> Optional[HotspotResult]:
        for stage in self.stages:
            if stage.hotspots is not None:
                return stage.hotspots
        return None

    def stage(self, phase: Phase) -> Optional[StageOutcome]:
        for stage in self.stages:
            if stage.phase is phase:
                return stage
        return None


class ToolRunner(Protocol):
    def run(self, phase: Phase, token: CancellationToken): ...


class RunOrchestrator:
    """Run the selected stages strictly in order.

    A tool failure is recorded and later stages still run. A timeout cancels
    the in-flight process and every remaining stage is skipped.
    Any hotspots error other than a timeout (missing history, a git failure,
    an unwritable findings path) degrades that stage: a warning, no findings
    document, and no effect on the exit status.
    """

    def __init__(
        self,
        config: RunConfiguration,
        runner: Optional[ToolRunner] = None,
        pipeline: Optional[HotspotPipeline] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self._runner = runner
        self._pipeline = pipeline
        self._clock = clock

    @property
    def runner(self) -> ToolRunner:
        if self._runner is None:
            self._runner = TrunkRunner(self.config)
        return self._runner

    @property
    def pipeline(self) -> HotspotPipeline:
        if self._pipeline is None:
            cache = None
            if self.config.cache_enabled:
                cache = ChurnCache(
                    self.config.resolve_cache_dir(), ttl_hours=self.config.cache_ttl_hours
                )
            self._pipeline = HotspotPipeline(self.config, cache=cache)
        return self._pipeline

    def run(self, on_progress: ProgressCallback = None) -> RunOutcome:
        deadline = Deadline(self.config.deadline_seconds, clock=self._clock)
        token = CancellationToken(deadline)
        outcome = RunOutcome()

        log_event(
            logger,
            logging.INFO,
            "run.start",
            phases=",".join(p.value for p in self.config.phases),
            timeout_seconds=self.config.timeout_seconds,
        )

        try:
            self._run_stages(token, outcome, on_progress)
        finally:
            if self._pipeline is not None and self._pipeline.cache is not None:
                self._pipeline.cache.close()

        log_event(
            logger,
            logging.INFO if outcome.succeeded else logging.ERROR,
            "run.finish",
            exit_code=outcome.exit_code,
            elapsed_seconds=round(deadline.elapsed(), 3),
        )
        return outcome

    def _run_stages(self, token: CancellationToken, outcome: RunOutcome, on_progress: ProgressCallback) -> None:
        for index, phase in enumerate(self.config.phases):
            if on_progress is not None:
                on_progress(f"Running {phase.value}...")

            stage = self._run_stage(phase, token, outcome)
            outcome.stages.append(stage)

            if stage.status is StageStatus.TIMED_OUT:
                self._skip_remaining(outcome, self.config.phases[index + 1:], "deadline exceeded")
                break

    def _run_stage(self, phase: Phase, token: CancellationToken, outcome: RunOutcome) -> StageOutcome:
        log_event(logger, logging.INFO, "stage.start", phase=phase.value)
        started = self._clock()

        def finish(status: StageStatus, detail: str = "", **kwargs) -> StageOutcome:
            duration = self._clock() - started
            level = logging.ERROR if status in (StageStatus.FAILED, StageStatus.TIMED_OUT) else logging.INFO
            log_event(
                logger,
                level,
                "stage.finish",
                phase=phase.value,
                status=status.value,
                duration_seconds=round(duration, 3),
            )
            return StageOutcome(phase, status, duration, detail, **kwargs)

        try:
            token.raise_if_cancelled(phase.value)
            if phase is Phase.HOTSPOTS:
                result = self.pipeline.run(token)
                log_event(
                    logger,
                    logging.INFO,
                    "sarif.write",
                    path=str(result.write.path),
                    results=result.write.count,
                    fallback=result.write.fell_back,
                )
                return finish(
                    StageStatus.SUCCEEDED,
                    f"{len(result.candidates)} hotspots -> {result.write.path}",
                    hotspots=result,
                )
            self.runner.run(phase, token)
            return finish(StageStatus.SUCCEEDED)

        except StageTimeout as e:
            log_event(logger, logging.ERROR, "stage.error", phase=phase.value, error=str(e))
            return finish(StageStatus.TIMED_OUT, str(e))
        except HistoryUnavailable as e:
            return self._degrade(outcome, finish, e.reason)
        except (PunchTrunkError, OSError) as e:
            if phase is Phase.HOTSPOTS:
                return self._degrade(outcome, finish, str(e))
            log_event(logger, logging.ERROR, "stage.error", phase=phase.value, error=str(e))
            return finish(StageStatus.FAILED, str(e))

    def _degrade(self, outcome: RunOutcome, finish, reason: str) -> StageOutcome:
        outcome.degraded.append(Phase.HOTSPOTS.value)
        log_event(logger, logging.WARNING, "hotspots.degraded", reason=reason)
        return finish(StageStatus.DEGRADED, f"skipped: {reason}")

    def _skip_remaining(self, outcome: RunOutcome, phases, reason: str) -> None:
        for phase in phases:
            logger.warning("Skipping %s: %s", phase.value, reason)
            outcome.stages.append(StageOutcome(phase, StageStatus.SKIPPED, detail=reason))
