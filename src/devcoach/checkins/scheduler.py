# src/devcoach/checkins/scheduler.py

from __future__ import annotations

"""
Check-in scheduler.

One long-lived coroutine per registered check-in:
- sleep until the next HH:MM:00,
- fire (log execution, ask the LLM for a coaching line, notify),
- repeat daily.

The coroutines run on a dedicated event loop (see start_scheduler_in_background);
handles are concurrent futures so the console thread can cancel them safely.
Nothing raised by a firing may stop the loop for that check-in.
"""

import asyncio
import concurrent.futures
import contextlib
import logging
import threading
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from ..core.coaching import build_checkin_prompt
from ..core.ports import Emitter
from ..core.state import AppState
from ..core.timeparse import next_occurrence
from ..errors import DevCoachError, SchedulingError
from .checkin_models import CheckinEntry, MissedCheckin
from .missed import compute_missed_checkins

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[None]]

NOTIFICATION_TITLE = "Dev Coach Check-in!"


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(slots=True, frozen=True)
class ScheduledJob:
    checkin_id: str
    time: str
    next_run: datetime


@dataclass(slots=True, frozen=True)
class CheckinRun:
    """What happened during one firing (mostly for status output and tests)."""

    checkin_id: str
    recorded: bool
    message: str | None = None
    notified: bool = False
    skipped_reason: str | None = None


class CheckinScheduler:
    def __init__(
        self,
        state: AppState,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        clock: Clock | None = None,
        emit: Emitter | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        self._state = state
        self._loop = loop
        self._clock = clock or _local_now
        self._sleep = sleep or asyncio.sleep
        self._emit = emit
        self._jobs: dict[str, tuple[CheckinEntry, concurrent.futures.Future]] = {}
        self._jobs_lock = threading.Lock()

    # ---- wiring ----

    def attach(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def set_emitter(self, emit: Emitter | None) -> None:
        self._emit = emit

    @property
    def running(self) -> bool:
        return self._loop is not None and not self._loop.is_closed()

    # ---- trigger management ----

    def schedule_all(self, checkins: Sequence[CheckinEntry]) -> int:
        """Arm one daily trigger per valid entry; invalid times are skipped."""
        if not self.running:
            raise SchedulingError("Check-in scheduler is not running.")
        assert self._loop is not None

        count = 0
        for entry in checkins:
            if not entry.is_valid:
                logger.warning("Skipping check-in with invalid time %r (id=%s)", entry.time, entry.id)
                continue
            with self._jobs_lock:
                if entry.id in self._jobs:
                    count += 1
                    continue
                fut = asyncio.run_coroutine_threadsafe(self._run_daily(entry), self._loop)
                self._jobs[entry.id] = (entry, fut)
            count += 1
            logger.info("Scheduled daily check-in for %s (id=%s)", entry.time, entry.id)
        return count

    def cancel_all(self) -> None:
        with self._jobs_lock:
            jobs = list(self._jobs.values())
            self._jobs.clear()
        for _entry, fut in jobs:
            fut.cancel()
        if jobs:
            logger.info("Cancelled %d check-in trigger(s)", len(jobs))

    def reschedule_all(self, checkins: Sequence[CheckinEntry]) -> int:
        self.cancel_all()
        return self.schedule_all(checkins)

    def is_scheduled(self, checkin_id: str) -> bool:
        with self._jobs_lock:
            job = self._jobs.get(checkin_id)
        return job is not None and not job[1].done()

    def jobs(self) -> list[ScheduledJob]:
        now = self._clock()
        with self._jobs_lock:
            items = [entry for entry, fut in self._jobs.values() if not fut.done()]
        out = [
            ScheduledJob(
                checkin_id=e.id,
                time=e.time,
                next_run=next_occurrence(e.time, now),
            )
            for e in items
        ]
        out.sort(key=lambda j: j.next_run)
        return out

    # ---- firing ----

    async def _run_daily(self, entry: CheckinEntry) -> None:
        target = next_occurrence(entry.time, self._clock())
        while True:
            delay = max(0.0, (target - self._clock()).total_seconds())
            logger.debug("Check-in %s armed, firing in %.0fs", entry.time, delay)
            await self._sleep(delay)
            try:
                await self.fire(entry)
            except Exception:
                logger.exception("Check-in %s (id=%s) failed", entry.time, entry.id)
            # An early wake-up must not fire the same slot twice.
            target = next_occurrence(entry.time, max(target, self._clock()))

    def _echo(self, text: str) -> None:
        if self._emit is None:
            return
        try:
            self._emit(text)
        except Exception:
            logger.debug("Emitter failed.", exc_info=True)

    async def fire(self, entry: CheckinEntry) -> CheckinRun:
        """
        Run one check-in:
        1. record the execution in today's log (idempotent)
        2. update last_successful_checkin
        3. bail out quietly if tasks or the AI key are unavailable
        4. build the prompt (tasks + missed check-ins since the previous success)
        5. ask the LLM (bounded by chat_timeout_seconds)
        6. notify + echo to console
        """
        state = self._state
        settings = state.settings
        now = self._clock()
        logger.info("Check-in %s (id=%s) fired", entry.time, entry.id)

        with state.lock:
            previous_success = state.config.last_successful_checkin()

            recorded = True
            try:
                state.checkin_log.record_execution(entry.id, now)
            except DevCoachError as e:
                recorded = False
                logger.warning("Could not record check-in %s: %s", entry.id, e)

            try:
                state.config.mark_checkin_success(now)
            except DevCoachError as e:
                logger.warning("Could not persist last_successful_checkin: %s", e)

            task_store = state.task_store
            tasks = task_store.snapshot() if task_store is not None else None
            api_key = state.api_key()

            missed: list[MissedCheckin] = compute_missed_checkins(
                list(state.config.data.checkins),
                previous_success,
                state.checkin_log,
                now,
                lookback_days=int(getattr(settings, "missed_lookback_days", 7)),
            )

        if tasks is None:
            logger.info("Tasks unavailable; skipping coaching message for %s", entry.time)
            return CheckinRun(entry.id, recorded, skipped_reason="tasks unavailable")
        if not api_key:
            logger.info("No AI API key configured; skipping coaching message for %s", entry.time)
            return CheckinRun(entry.id, recorded, skipped_reason="no api key")

        prompt = build_checkin_prompt(tasks, missed, now=now, entry=entry)
        timeout = float(getattr(settings, "chat_timeout_seconds", 30.0))
        try:
            message = await asyncio.wait_for(
                asyncio.to_thread(state.llm.generate_reply, prompt, api_key, timeout=timeout),
                timeout=timeout + 5.0,
            )
        except (DevCoachError, asyncio.TimeoutError) as e:
            logger.error("Coaching message for %s failed: %s", entry.time, e or type(e).__name__)
            return CheckinRun(entry.id, recorded, skipped_reason="ai error")
        except Exception:
            logger.exception("Coaching message for %s crashed", entry.time)
            return CheckinRun(entry.id, recorded, skipped_reason="ai error")

        message = (message or "").strip()
        if not message:
            logger.warning("Empty coaching message for %s", entry.time)
            return CheckinRun(entry.id, recorded, skipped_reason="empty reply")

        notified = True
        try:
            await asyncio.to_thread(state.notifier.notify, NOTIFICATION_TITLE, message, sound=True, wait=True)
        except Exception:
            notified = False
            logger.exception("Notifier failed for %s", entry.time)

        self._echo(f"--- Scheduled Check-in ({entry.time}) ---\nAI Coach: {message}")
        return CheckinRun(entry.id, recorded, message=message, notified=notified)


def send_test_notification(state: AppState) -> None:
    state.notifier.notify(
        NOTIFICATION_TITLE,
        "This is a test notification. Check-ins will look like this.",
        sound=True,
        wait=False,
    )


@dataclass(slots=True)
class SchedulerRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    scheduler: CheckinScheduler

    def stop(self) -> None:
        self.scheduler.cancel_all()
        try:
            self.loop.call_soon_threadsafe(self.loop.stop)
        except RuntimeError:
            logger.debug("Scheduler loop already closed.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_scheduler_in_background(state: AppState, *, emit: Emitter | None = None) -> SchedulerRunner | None:
    """
    Run the check-in scheduler on its own event loop in a daemon thread.

    Why a thread: the console REPL blocks on input().
    Arms every registered check-in before returning.
    """
    ready = threading.Event()
    holder: dict[str, asyncio.AbstractEventLoop] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        holder["loop"] = loop
        ready.set()
        try:
            loop.run_forever()
        finally:
            with contextlib.suppress(Exception):
                pending = asyncio.all_tasks(loop)
                for t in pending:
                    t.cancel()
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="devcoach-scheduler", daemon=True)
    t.start()
    ready.wait(timeout=5.0)

    loop = holder.get("loop")
    if loop is None:
        logger.error("Scheduler thread did not initialize properly.")
        return None

    scheduler = state.scheduler if isinstance(state.scheduler, CheckinScheduler) else CheckinScheduler(state)
    scheduler.attach(loop)
    if emit is not None:
        scheduler.set_emitter(emit)
    state.scheduler = scheduler

    with state.lock:
        checkins = list(state.config.data.checkins)
    n = scheduler.schedule_all(checkins)
    logger.info("Scheduler thread started; %d check-in(s) armed.", n)
    return SchedulerRunner(thread=t, loop=loop, scheduler=scheduler)
