"""Grid iterator: walks every (region, year, month) cell exactly once."""
from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_exponential

from formgrid.browser.driver import Driver
from formgrid.config import RetryConfig, SiteConfig
from formgrid.core.classify import AttemptOutcome, Status, classify
from formgrid.core.frames import enter_frame
from formgrid.core.grid import Dimension, GridAxes, GridCell, IterationCursor
from formgrid.core.recovery import recover
from formgrid.core.runlog import RunLog
from formgrid.core.selection import select, trigger_download, wait_until_ready
from formgrid.core.session import SessionState
from formgrid.errors import DriverError, FrameNotFound, OptionNotFound, RecoveryFailed, StaleFrameError

logger = logging.getLogger("formgrid.runner")


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    ABORTED = "aborted"


class Phase(str, Enum):
    SELECTING = "selecting"
    DOWNLOADING = "downloading"
    CLASSIFYING = "classifying"
    RECOVERING = "recovering"
    ADVANCING = "advancing"


@dataclass(frozen=True)
class RunResult:
    state: RunState
    outcomes: tuple[AttemptOutcome, ...]
    total_cells: int
    error: Optional[BaseException] = None

    @property
    def counts(self) -> Counter:
        return Counter(outcome.status for outcome in self.outcomes)

    @property
    def complete(self) -> bool:
        return self.state is RunState.DONE and len(self.outcomes) == self.total_cells


class GridRunner:
    """Drive one browser session through the whole grid.

    Per-cell failures become log entries; only a missing frame or a failed
    recovery aborts the run, leaving the partial log in place.
    """

    def __init__(
        self,
        driver: Driver,
        site: SiteConfig,
        axes: GridAxes,
        run_log: Optional[RunLog] = None,
        retry: Optional[RetryConfig] = None,
        debug_dir: Optional[Path] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.driver = driver
        self.site = site
        self.axes = axes
        self.run_log = run_log if run_log is not None else RunLog()
        self.retry = retry or RetryConfig()
        self.debug_dir = debug_dir
        self._sleep = sleep
        self.state = RunState.IDLE
        self.phase: Optional[Phase] = None
        self.cursor: Optional[IterationCursor] = None

    def run(self) -> RunResult:
        session = SessionState(self.driver)
        try:
            session = enter_frame(session, self.site)
        except FrameNotFound as exc:
            return self._abort(exc)

        self.state = RunState.RUNNING
        logger.info("Walking %d cells (%d regions x %d years x %d months)", len(self.axes), *self.axes.shape)
        cursor: Optional[IterationCursor] = IterationCursor()
        try:
            while cursor is not None:
                self.cursor = cursor
                cell = cursor.cell(self.axes)
                session = self._run_cell(session, cell)
                self._enter(Phase.ADVANCING, cell)
                cursor = cursor.advance(self.axes.shape)
        except (FrameNotFound, RecoveryFailed) as exc:
            return self._abort(exc)

        if len(self.run_log) != len(self.axes):
            raise RuntimeError(f"run log holds {len(self.run_log)} outcomes for {len(self.axes)} cells")
        self.state = RunState.DONE
        result = self._result()
        logger.info(
            "Run complete: %d success, %d absent, %d errors",
            result.counts[Status.SUCCESS],
            result.counts[Status.EXPECTED_ABSENCE],
            result.counts[Status.UNEXPECTED_ERROR],
        )
        return result

    def _run_cell(self, session: SessionState, cell: GridCell) -> SessionState:
        """Attempt ``cell`` (with retries), log its single outcome, then repair the form if needed."""
        attempt_number = 0
        last: Optional[AttemptOutcome] = None

        def attempt() -> AttemptOutcome:
            nonlocal session, attempt_number, last
            if last is not None:
                session = self._recover(session, cell)
            attempt_number += 1
            session, last = self._attempt(session, cell, attempt_number)
            return last

        def log_retry(retry_state) -> None:
            logger.info("Retrying %s (attempt %d failed)", cell.label(), retry_state.attempt_number)

        retrying = Retrying(
            stop=stop_after_attempt(self.retry.attempts),
            wait=wait_exponential(multiplier=self.retry.backoff_seconds, max=self.retry.max_backoff_seconds),
            retry=retry_if_result(lambda outcome: outcome.status is Status.UNEXPECTED_ERROR),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
            before_sleep=log_retry,
            sleep=self._sleep,
        )
        try:
            outcome = retrying(attempt)
        except RecoveryFailed:
            # Recovery between retries failed: the last finished try is the cell's outcome.
            if last is not None:
                self.run_log.append(replace(last, attempts=attempt_number))
            raise

        self.run_log.append(replace(outcome, attempts=attempt_number))
        if not outcome.ok:
            session = self._recover(session, cell)
        return session

    def _attempt(
        self, session: SessionState, cell: GridCell, attempt_number: int
    ) -> tuple[SessionState, AttemptOutcome]:
        downloads: list[str] = []
        try:
            self._enter(Phase.SELECTING, cell)
            session = self._select_outer(session, cell)
            session = select(session, self.site, Dimension.MONTH, cell.month)
            wait_until_ready(session, self.site)
            self._enter(Phase.DOWNLOADING, cell)
            session, entries, downloads = trigger_download(session, self.site)
        except (DriverError, OptionNotFound, StaleFrameError) as exc:
            signals: tuple[str, ...] = (str(exc),)
            status = Status.UNEXPECTED_ERROR
        else:
            self._enter(Phase.CLASSIFYING, cell)
            signals = tuple(entry.message for entry in entries)
            observed = bool(downloads) if self.site.require_download_event else None
            status = classify(entries, download_observed=observed)

        outcome = AttemptOutcome(cell=cell, status=status, signals=signals, downloads=tuple(downloads))
        self._log_outcome(outcome)
        if status is Status.UNEXPECTED_ERROR and self.debug_dir is not None:
            prefix = f"{cell.region}_{cell.year}_{cell.month:02d}_attempt{attempt_number}"
            self.driver.capture_debug(self.debug_dir / prefix)
        return session, outcome

    def _recover(self, session: SessionState, cell: GridCell) -> SessionState:
        self._enter(Phase.RECOVERING, cell)
        return recover(session, self.site, cell)

    def _select_outer(self, session: SessionState, cell: GridCell) -> SessionState:
        # Region and year persist until the cursor rolls them over or recovery restores them.
        if session.selections.region != cell.region:
            session = select(session, self.site, Dimension.REGION, cell.region)
        if session.selections.year != cell.year:
            session = select(session, self.site, Dimension.YEAR, cell.year)
        return session

    def _enter(self, phase: Phase, cell: GridCell) -> None:
        self.phase = phase
        logger.debug("%s: %s", cell.label(), phase.value)

    def _log_outcome(self, outcome: AttemptOutcome) -> None:
        label = outcome.cell.label()
        if outcome.status is Status.SUCCESS:
            if outcome.downloads:
                logger.info("%s saved %s", label, ", ".join(outcome.downloads))
            else:
                logger.info("%s ok", label)
        elif outcome.status is Status.EXPECTED_ABSENCE:
            logger.info("%s has no file", label)
        else:
            logger.warning("%s failed: %s", label, "; ".join(outcome.signals))

    def _abort(self, exc: BaseException) -> RunResult:
        self.state = RunState.ABORTED
        logger.error("Run aborted after %d of %d cells: %s", len(self.run_log), len(self.axes), exc)
        return self._result(error=exc)

    def _result(self, error: Optional[BaseException] = None) -> RunResult:
        return RunResult(
            state=self.state,
            outcomes=self.run_log.outcomes,
            total_cells=len(self.axes),
            error=error,
        )
