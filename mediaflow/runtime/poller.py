from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from mediaflow.client.dispatcher import Dispatcher
from mediaflow.core.config import settings
from mediaflow.core.errors import (
    InputValidationError,
    TaskCancelledError,
    TaskFailedError,
    TaskTimeoutError,
)
from mediaflow.domain.models import JobState, classify_status
from mediaflow.domain.state_machine import PollPhase, PollTracker

log = logging.getLogger("mediaflow.poller")

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass
class PollLimits:
    max_retries: int = 20
    retry_interval_ms: int = 3000
    # 1.0 keeps the interval fixed; anything larger grows it geometrically
    backoff_factor: float = 1.0
    max_interval_ms: Optional[int] = None

    @classmethod
    def from_settings(cls, **overrides: Any) -> "PollLimits":
        base = cls(max_retries=settings.max_retries, retry_interval_ms=settings.retry_interval_ms)
        for k, v in overrides.items():
            if v is not None:
                setattr(base, k, v)
        return base

    def interval_s(self, attempt: int) -> float:
        ms = self.retry_interval_ms * (self.backoff_factor ** attempt)
        if self.max_interval_ms is not None:
            ms = min(ms, self.max_interval_ms)
        return ms / 1000.0

@dataclass
class PollState:
    attempts: int = 0
    tracker: PollTracker = field(default_factory=PollTracker)
    last_status: Optional[str] = None


async def _pause(seconds: float, *, sleep: SleepFn, cancel: Optional[asyncio.Event]) -> bool:
    """Sleep between polls. Returns True if the cancel signal fired meanwhile."""
    if cancel is None:
        await sleep(seconds)
        return False
    # the injected sleep still drives the interval; the signal cuts it short
    sleeper = asyncio.ensure_future(sleep(seconds))
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for t in (sleeper, waiter):
            if not t.done():
                t.cancel()
    if sleeper in done:
        sleeper.result()
    return cancel.is_set()


async def wait_for_task(
    dispatcher: Dispatcher,
    task_id: str,
    *,
    limits: Optional[PollLimits] = None,
    cancel: Optional[asyncio.Event] = None,
    sleep: SleepFn = asyncio.sleep,
    state: Optional[PollState] = None,
) -> Dict[str, Any]:
    """
    Poll ``GET /api/v1/task/{task_id}`` until the task is terminal.

    Returns the envelope's ``data`` on ``success``/``completed``. Raises
    TaskFailedError on ``failed``, TaskTimeoutError once ``max_retries``
    status calls came back in-flight, TaskCancelledError when ``cancel``
    is set. No call is made after a terminal observation.
    """
    limits = limits or PollLimits.from_settings()
    if limits.max_retries < 1:
        raise InputValidationError(f"max_retries must be >= 1, got {limits.max_retries}")
    state = state or PollState()
    tracker = state.tracker

    while state.attempts < limits.max_retries:
        if cancel is not None and cancel.is_set():
            tracker.move(PollPhase.CANCELLED)
            raise TaskCancelledError(task_id)

        tracker.move(PollPhase.POLLING)
        response = await dispatcher.get_task(task_id)
        state.attempts += 1

        data = response.get("data") or {}
        status = data.get("status")
        state.last_status = status
        log.debug(
            "task status %s (attempt %d/%d)", status, state.attempts, limits.max_retries,
            extra={"task_id": task_id, "event": "task_polled"},
        )

        outcome = classify_status(status)
        if outcome == JobState.SUCCEEDED:
            tracker.move(PollPhase.SUCCEEDED)
            log.info("task finished", extra={"task_id": task_id, "event": "task_succeeded"})
            return data

        if outcome == JobState.FAILED:
            tracker.move(PollPhase.FAILED)
            log.warning("task failed", extra={"task_id": task_id, "event": "task_failed"})
            raise TaskFailedError(task_id, data.get("error"))

        if state.attempts >= limits.max_retries:
            break

        if await _pause(limits.interval_s(state.attempts - 1), sleep=sleep, cancel=cancel):
            tracker.move(PollPhase.CANCELLED)
            raise TaskCancelledError(task_id)

    tracker.move(PollPhase.TIMED_OUT)
    log.warning("task timed out", extra={"task_id": task_id, "event": "task_timed_out"})
    raise TaskTimeoutError(task_id, limits.max_retries)
