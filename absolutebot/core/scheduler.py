"""Daily-at-hour and fixed-interval task scheduler."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from croniter import croniter

from absolutebot.utils.logging import get_logger

log = get_logger(__name__)

Action = Callable[[], Awaitable[Any]]


def next_daily_run(hour: int, now: datetime) -> datetime:
    """Next ``hour:00`` at or after ``now``.

    Exactly ``hour:00:00`` is due immediately; otherwise today if the hour
    has not passed yet, else tomorrow.
    """
    if not 0 <= hour <= 23:
        raise ValueError(f"Invalid hour: {hour}")
    expression = f"0 {hour} * * *"
    if now.second == 0 and now.microsecond == 0 and croniter.match(expression, now):
        return now
    return croniter(expression, now).get_next(datetime)


@dataclass
class Job:
    name: str
    action: Action
    hour: int | None = None
    interval: float | None = None

    @property
    def is_daily(self) -> bool:
        return self.hour is not None


class TaskScheduler:
    """Runs each registered job in its own asyncio task.

    All loops share one stop event, so ``stop()`` ends every sleep at once
    and no action runs after it.
    """

    def __init__(self, now: Callable[[], datetime] = datetime.now) -> None:
        self._now = now
        self._jobs: list[Job] = []
        self._tasks: list[asyncio.Task[None]] = []
        self._stop_event = asyncio.Event()
        self._started = False

    @property
    def jobs(self) -> list[Job]:
        return list(self._jobs)

    @property
    def running(self) -> bool:
        return self._started

    def add_daily(self, name: str, hour: int, action: Action) -> Job:
        if not 0 <= hour <= 23:
            raise ValueError(f"Invalid hour: {hour}")
        job = Job(name=name, action=action, hour=hour)
        self._add(job)
        return job

    def add_periodic(self, name: str, interval: float | timedelta, action: Action) -> Job:
        seconds = interval.total_seconds() if isinstance(interval, timedelta) else float(interval)
        if seconds <= 0:
            raise ValueError(f"Interval must be positive: {interval}")
        job = Job(name=name, action=action, interval=seconds)
        self._add(job)
        return job

    def _add(self, job: Job) -> None:
        self._jobs.append(job)
        if self._started:
            self._spawn(job)

    async def start(self) -> None:
        self._stop_event.clear()
        self._started = True
        for job in self._jobs:
            self._spawn(job)
        log.info("scheduler_started", jobs=len(self._jobs))

    async def stop(self) -> None:
        self._started = False
        self._stop_event.set()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        log.info("scheduler_stopped")

    def _spawn(self, job: Job) -> None:
        loop = self._daily_loop(job) if job.is_daily else self._periodic_loop(job)
        self._tasks.append(asyncio.create_task(loop, name=f"job-{job.name}"))

    async def _daily_loop(self, job: Job) -> None:
        assert job.hour is not None
        last_run: datetime | None = None
        while not self._stop_event.is_set():
            now = self._now()
            if last_run is not None and now <= last_run:
                # woke early or the clock went back: the slot already ran
                now = last_run + timedelta(microseconds=1)
            next_run = next_daily_run(job.hour, now)
            delay = (next_run - now).total_seconds()
            log.debug("daily_job_scheduled", job=job.name, next_run=next_run.isoformat())
            if await self._sleep(delay):
                return
            await self._run(job)
            last_run = next_run

    async def _periodic_loop(self, job: Job) -> None:
        assert job.interval is not None
        while not self._stop_event.is_set():
            if await self._sleep(job.interval):
                return
            await self._run(job)

    async def _sleep(self, delay: float) -> bool:
        """Wait ``delay`` seconds; True if stop was requested meanwhile."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=max(delay, 0))
        except asyncio.TimeoutError:
            return False
        return True

    async def _run(self, job: Job) -> None:
        try:
            await job.action()
        except Exception:
            log.exception("scheduled_job_failed", job=job.name)
