"""
Windowed backfill: discover and parse the archive one date window at a time.

The date range is split into calendar months (or fixed ``window_days``
windows). Progress is persisted after every window transition, so an
interrupted backfill resumes with the first window that is not done.
Each window runs discover (appending to the index) and then parse, each
retried with a fixed delay. After a window succeeds the index is deduped.
"""

import calendar
import time
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from loguru import logger
from tenacity import RetryCallState, Retrying, stop_after_attempt, wait_fixed

from fosdecisions.core.text_extractor import parse_decision_date
from fosdecisions.dbs.adapters.jsonl_index_store import DecisionIndexStore
from fosdecisions.dbs.layout import DatasetLayout
from fosdecisions.models.backfill import BackfillState, BackfillWindow, WindowStatus
from fosdecisions.models.options import DEFAULT_START_DATE, PipelineOptions
from fosdecisions.services.report import StageReport

Window = Tuple[str, str]
StageRunner = Callable[[str, PipelineOptions], StageReport]


def _parse_bounds(start_date: str, end_date: str) -> Tuple[date, date]:
    start = parse_decision_date(start_date)
    end = parse_decision_date(end_date)
    if start is None or end is None or start > end:
        raise ValueError(f"Invalid date range: {start_date} to {end_date}")
    return start, end


def month_ranges(start_date: str, end_date: str) -> List[Window]:
    """Calendar-month windows clipped to [start_date, end_date]."""
    start, end = _parse_bounds(start_date, end_date)
    windows: List[Window] = []
    cursor = start.replace(day=1)
    while cursor <= end:
        month_end = cursor.replace(day=calendar.monthrange(cursor.year, cursor.month)[1])
        windows.append((max(cursor, start).isoformat(), min(month_end, end).isoformat()))
        cursor = month_end + timedelta(days=1)
    return windows


def day_ranges(start_date: str, end_date: str, window_days: int) -> List[Window]:
    """Consecutive ``window_days``-day windows; the last one is clipped to end_date."""
    start, end = _parse_bounds(start_date, end_date)
    if window_days <= 0:
        raise ValueError(f"Invalid window days: {window_days}")
    windows: List[Window] = []
    cursor = start
    while cursor <= end:
        window_end = min(cursor + timedelta(days=window_days - 1), end)
        windows.append((cursor.isoformat(), window_end.isoformat()))
        cursor = window_end + timedelta(days=1)
    return windows


class BackfillService:
    """Runs discover + parse per window with persisted, resumable state."""

    def __init__(
        self,
        run_stage: StageRunner,
        layout: DatasetLayout,
        base_options: PipelineOptions,
        state_path: Optional[Path] = None,
        retries: int = 2,
        retry_delay_ms: int = 5000,
        stop_on_error: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.run_stage = run_stage
        self.layout = layout
        self.base_options = base_options
        self.state_path = Path(state_path) if state_path else layout.backfill_state_path
        self.retries = retries
        self.retry_delay_ms = retry_delay_ms
        self.stop_on_error = stop_on_error
        self.sleep = sleep

    def load_state(self, windows: List[Window], config: dict) -> BackfillState:
        """Saved state, or a fresh one when missing or built for other windows."""
        state = BackfillState.load(self.state_path)
        if state is None or not state.matches(windows):
            if state is not None:
                logger.info("Window set changed; rebuilding backfill state")
            state = BackfillState.fresh(windows, config)
            state.save(self.state_path)
        return state

    def _run_with_retry(self, stage: str, window: BackfillWindow) -> Optional[str]:
        """Run one stage for a window; returns the final error message or None."""
        options = self.base_options.model_copy(update={
            "stages": [stage],
            "start_date": window.start,
            "end_date": window.end,
            "append": stage == "discover",
        })
        label = f"{stage.capitalize()} {window.start} -> {window.end}"

        def log_retry(retry_state: RetryCallState) -> None:
            logger.warning(
                f"{label} failed (attempt {retry_state.attempt_number}/{self.retries + 1}); "
                f"retrying in {self.retry_delay_ms}ms: {retry_state.outcome.exception()}"
            )

        retrying = Retrying(
            stop=stop_after_attempt(self.retries + 1),
            wait=wait_fixed(self.retry_delay_ms / 1000),
            sleep=self.sleep,
            before_sleep=log_retry,
            reraise=True,
        )
        try:
            retrying(self.run_stage, stage, options)
        except Exception as e:
            logger.error(f"{label} failed: {e}")
            return str(e) or e.__class__.__name__
        return None

    def run(
        self,
        start_date: str = DEFAULT_START_DATE,
        end_date: Optional[str] = None,
        window_days: Optional[int] = None,
        force: bool = False,
    ) -> BackfillState:
        end_date = end_date or date.today().isoformat()
        windows = day_ranges(start_date, end_date, window_days) if window_days else month_ranges(start_date, end_date)
        config = {
            "start_date": start_date,
            "end_date": end_date,
            "window_days": window_days,
            "index_path": str(self.layout.index_path),
            "pdf_dir": str(self.layout.pdf_dir),
        }
        state = self.load_state(windows, config)
        index_store = DecisionIndexStore(self.layout.index_path)

        logger.info(
            f"Running {f'{window_days}-day' if window_days else 'monthly'} windows "
            f"from {start_date} to {end_date} ({len(state.windows)} windows)"
        )

        for window in state.windows:
            if not force and window.status == WindowStatus.done:
                continue

            window.attempts += 1
            window.mark(WindowStatus.running)
            state.save(self.state_path)

            error = self._run_with_retry("discover", window) or self._run_with_retry("parse", window)
            if error:
                window.mark(WindowStatus.failed, error)
                state.save(self.state_path)
                if self.stop_on_error:
                    break
                continue

            window.mark(WindowStatus.done)
            state.save(self.state_path)

            if index_store.exists():
                total = index_store.dedupe()
                logger.info(f"Deduped index -> {index_store.path} ({total} rows)")

        return state
