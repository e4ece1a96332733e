"""
Job Poller - track long-running enhancement jobs to a terminal state.

Each tracked job owns exactly two timers:
- an interval task that checks status every `interval` seconds
  (the first check runs immediately), and
- a ceiling TimerHandle that forces a timeout after `timeout` seconds.

State machine per job:

    Initializing -> Polling -> Completed | Stuck | TimedOut | Cancelled

Every terminal transition clears both timers, marks the progress record
terminal (is_polling=False, all_terminated=True) and fires exactly one
JobNotice. Completed and Stuck also trigger one refresh of the owning
file list.

A failed or unparseable status check is a no-op tick: the previous
progress is kept and polling continues until the ceiling.

Usage:
    poller = JobPoller(status_check=client.check_file_status, on_refresh=service.refresh_files)
    cancel = poller.start_polling(file_id, on_update=render, on_terminal=notify, label=file_name)
    ...
    cancel()   # or poller.cancel(file_id)

All methods must be called from the event loop thread.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from lens.core.config import get_settings
from lens.core.models import JobNotice, JobOutcome, JobProgress
from lens.enhancement.status import parse_status

logger = logging.getLogger(__name__)

StatusCheck = Callable[[str], Awaitable[Any]]
UpdateCallback = Callable[[JobProgress], None]
TerminalCallback = Callable[[JobProgress, JobNotice], None]
RefreshCallback = Callable[[], Any]


class StaleTracker:
    """Counts consecutive ticks on which the terminated counter did not move."""

    def __init__(self, max_stale_ticks: int):
        self.max_stale_ticks = max_stale_ticks
        self.baseline = 0
        self.stale_ticks = 0

    def observe(self, terminated: int) -> None:
        if terminated == self.baseline:
            self.stale_ticks += 1
        else:
            self.stale_ticks = 0
            self.baseline = terminated

    def is_stuck(self, terminated: int) -> bool:
        # A job that never started terminating is slow, not stuck
        return self.stale_ticks >= self.max_stale_ticks and terminated > 0


@dataclass
class _PollHandles:
    """Timer pair and callbacks for one polling session."""

    tracker: StaleTracker
    label: str
    on_update: Optional[UpdateCallback] = None
    on_terminal: Optional[TerminalCallback] = None
    task: Optional[asyncio.Task] = None
    ceiling: Optional[asyncio.TimerHandle] = None
    active: bool = True
    ticks: int = 0


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


def _consume_orphaned(task: asyncio.Future) -> None:
    """Retrieve a check's outcome so one orphaned by a cancelled poll is never left unobserved."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"[JobPoller] Status check task ended with error: {error}")


class JobPoller:
    """Registry of polled jobs: job_id -> timer pair, plus last progress."""

    def __init__(
        self,
        status_check: StatusCheck,
        on_refresh: Optional[RefreshCallback] = None,
        interval: Optional[float] = None,
        max_stale_ticks: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the poller.

        Args:
            status_check: Async callable returning the raw status body for a job id
            on_refresh: Called once after a job completes or stalls (sync or async)
            interval: Seconds between checks (None = use settings)
            max_stale_ticks: Unchanged ticks before a started job counts as stuck
            timeout: Ceiling in seconds for one polling session
        """
        polling = get_settings().polling
        self._status_check = status_check
        self._on_refresh = on_refresh
        self.interval = interval if interval is not None else polling.interval_seconds
        self.max_stale_ticks = (
            max_stale_ticks if max_stale_ticks is not None else polling.max_stale_ticks
        )
        self.timeout = timeout if timeout is not None else polling.timeout_seconds

        self._handles: dict[str, _PollHandles] = {}
        self._progress: dict[str, JobProgress] = {}

    # =========================================================================
    # Public API
    # =========================================================================

    def start_polling(
        self,
        job_id: str,
        on_update: Optional[UpdateCallback] = None,
        on_terminal: Optional[TerminalCallback] = None,
        label: Optional[str] = None,
    ) -> Callable[[], bool]:
        """
        Start tracking a job. Must be called with a running event loop.

        A job that is already tracked has its previous timers cancelled
        first (silently, no notice).

        Returns:
            A cancel function bound to this polling session
        """
        loop = asyncio.get_running_loop()

        previous = self._handles.get(job_id)
        if previous is not None:
            logger.info(f"[JobPoller] Restarting poll for {job_id}, cancelling previous timers")
            self._stop(job_id, previous)

        handles = _PollHandles(
            tracker=StaleTracker(self.max_stale_ticks),
            label=label or job_id,
            on_update=on_update,
            on_terminal=on_terminal,
        )
        self._progress[job_id] = JobProgress(job_id=job_id, label=handles.label, is_polling=True)
        self._handles[job_id] = handles

        handles.task = loop.create_task(self._run(job_id, handles))
        handles.ceiling = loop.call_later(self.timeout, self._on_ceiling, job_id, handles)

        logger.info(
            f"[JobPoller] Polling {job_id} every {self.interval}s "
            f"(stale_after={self.max_stale_ticks}, timeout={self.timeout}s)"
        )
        return lambda: self._cancel_session(job_id, handles)

    def cancel(self, job_id: str) -> bool:
        """Cancel polling for a job. Returns False if it was not polling."""
        handles = self._handles.get(job_id)
        if handles is None:
            return False
        return self._cancel_session(job_id, handles)

    def discard(self, job_id: str) -> Optional[JobProgress]:
        """Stop tracking a job entirely and drop its progress record."""
        handles = self._handles.get(job_id)
        if handles is not None:
            self._stop(job_id, handles)
        return self._progress.pop(job_id, None)

    def shutdown(self) -> None:
        """Clear every timer pair without notices (owner is going away)."""
        for job_id, handles in list(self._handles.items()):
            self._stop(job_id, handles)
            progress = self._progress.get(job_id)
            if progress is not None:
                self._progress[job_id] = progress.model_copy(update={"is_polling": False})
        logger.info("[JobPoller] Shut down")

    def get_progress(self, job_id: str) -> Optional[JobProgress]:
        return self._progress.get(job_id)

    @property
    def progress(self) -> dict[str, JobProgress]:
        """Snapshot of every known progress record."""
        return dict(self._progress)

    def is_tracking(self, job_id: str) -> bool:
        """True while the job has live timers."""
        return job_id in self._handles

    # =========================================================================
    # Polling loop
    # =========================================================================

    async def _run(self, job_id: str, handles: _PollHandles) -> None:
        while handles.active:
            if await self._tick(job_id, handles):
                return
            await asyncio.sleep(self.interval)

    async def _tick(self, job_id: str, handles: _PollHandles) -> bool:
        """Run one status check. Returns True once the session is over."""
        handles.ticks += 1
        try:
            check = asyncio.ensure_future(self._status_check(job_id))
            check.add_done_callback(_consume_orphaned)
            data = await asyncio.shield(check)
        except Exception as e:
            logger.warning(f"[JobPoller] Status check failed for {job_id} (tick {handles.ticks}): {e}")
            return not handles.active

        if not handles.active:
            return True

        status = parse_status(data)
        if status is None:
            logger.warning(f"[JobPoller] Unparseable status for {job_id} (tick {handles.ticks})")
            return False

        progress = self._progress[job_id].model_copy(update=status.model_dump())
        self._progress[job_id] = progress
        handles.tracker.observe(status.terminated_units)

        logger.debug(
            f"[JobPoller] {job_id} tick {handles.ticks}: "
            f"{status.terminated_units}/{status.total_units} terminated, "
            f"stale={handles.tracker.stale_ticks}"
        )
        self._emit_update(handles, progress)

        if not handles.active:
            return True

        if status.all_terminated:
            self._finish(
                job_id, handles, JobOutcome.COMPLETED,
                f'Enhancement completed for "{handles.label}"!',
            )
            await self._refresh()
            return True

        if handles.tracker.is_stuck(status.terminated_units):
            self._finish(
                job_id, handles, JobOutcome.STUCK,
                f'Enhancement finished for "{handles.label}" '
                f"({status.terminated_units}/{status.total_units} chunks processed)",
            )
            await self._refresh()
            return True

        return False

    def _on_ceiling(self, job_id: str, handles: _PollHandles) -> None:
        minutes = f"{self.timeout / 60:g}"
        self._finish(
            job_id, handles, JobOutcome.TIMED_OUT,
            f'Enhancement timeout for "{handles.label}" ({minutes} min limit) - check backend workflow',
        )

    def _cancel_session(self, job_id: str, handles: _PollHandles) -> bool:
        return self._finish(
            job_id, handles, JobOutcome.CANCELLED,
            f'Enhancement cancelled for "{handles.label}"',
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def _clear_timers(self, handles: _PollHandles) -> None:
        if handles.ceiling is not None:
            handles.ceiling.cancel()
        if handles.task is not None and handles.task is not _current_task():
            handles.task.cancel()

    def _stop(self, job_id: str, handles: _PollHandles) -> None:
        handles.active = False
        self._clear_timers(handles)
        if self._handles.get(job_id) is handles:
            del self._handles[job_id]

    def _finish(self, job_id: str, handles: _PollHandles, outcome: JobOutcome, message: str) -> bool:
        """Move a live session to a terminal state. No-op if already terminal."""
        if not handles.active:
            return False
        self._stop(job_id, handles)

        progress = self._progress[job_id].model_copy(
            update={"is_polling": False, "all_terminated": True}
        )
        self._progress[job_id] = progress
        notice = JobNotice(job_id=job_id, outcome=outcome, message=message)

        logger.info(f"[JobPoller] {job_id} -> {outcome.value}: {message}")
        if handles.on_terminal is not None:
            try:
                handles.on_terminal(progress, notice)
            except Exception as e:
                logger.error(f"[JobPoller] on_terminal callback failed for {job_id}: {e}")
        return True

    def _emit_update(self, handles: _PollHandles, progress: JobProgress) -> None:
        if handles.on_update is None:
            return
        try:
            handles.on_update(progress)
        except Exception as e:
            logger.error(f"[JobPoller] on_update callback failed for {progress.job_id}: {e}")

    async def _refresh(self) -> None:
        if self._on_refresh is None:
            return
        try:
            result = self._on_refresh()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"[JobPoller] File list refresh failed: {e}")
