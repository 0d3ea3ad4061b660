"""
Lunch Scraper — Scrape Scheduler

Turns an optional cron expression into a timer that broadcasts
Command.RUN on every firing.

Accepted expressions:
- 5 fields: standard crontab      "minute hour day month day_of_week"
- 6 fields: with leading seconds  "second minute hour day month day_of_week"
- 7 fields: seconds ... year      "second minute hour day month day_of_week year"

Timezone: the one given, else the host's local zone.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from lunchscraper.scrape.bus import BroadcastChannel, ChannelClosed, Command

logger = structlog.get_logger(__name__)

JOB_ID = "scrape_cycle"

_FIELDS_WITH_SECONDS = ("second", "minute", "hour", "day", "month", "day_of_week", "year")


class ScheduleError(Exception):
    """The schedule expression could not be turned into a timer."""


class NoSchedule(ScheduleError):
    """
    No schedule expression was given.

    Not a failure: the supervisor catches this and runs one-shot.
    """


def parse_schedule(expr: str, timezone: Optional[str] = None) -> CronTrigger:
    """
    Parse a cron expression into an APScheduler trigger.

    Raises:
        ScheduleError: wrong field count or an invalid field value.
    """
    fields = expr.split()
    try:
        if len(fields) == 5:
            return CronTrigger.from_crontab(expr, timezone=timezone)
        if len(fields) in (6, 7):
            return CronTrigger(**dict(zip(_FIELDS_WITH_SECONDS, fields)), timezone=timezone)
    except (ValueError, LookupError) as e:
        raise ScheduleError(f"invalid schedule {expr!r}: {e}") from e
    raise ScheduleError(
        f"invalid schedule {expr!r}: expected 5, 6 or 7 fields, got {len(fields)}"
    )


class CronTimer:
    """
    Fires Command.RUN on the command bus whenever the trigger fires.

    Usage:
        timer = create_timer("0 30 10 * * mon-fri", commands)
        timer.start()
        ...
        timer.shutdown()
    """

    def __init__(self, trigger: CronTrigger, commands: BroadcastChannel[Command]) -> None:
        self.trigger = trigger
        self._commands = commands
        self._scheduler = AsyncIOScheduler(timezone=trigger.timezone)
        self.fired = 0

    async def _fire(self) -> None:
        try:
            receivers = self._commands.send(Command.RUN)
        except ChannelClosed:
            logger.debug("schedule_fired_after_close")
            return
        self.fired += 1
        logger.info("schedule_fired", receivers=receivers, fired=self.fired)

    @property
    def running(self) -> bool:
        return self._scheduler.running

    @property
    def next_fire_time(self) -> Optional[datetime]:
        job = self._scheduler.get_job(JOB_ID)
        return job.next_run_time if job is not None else None

    def start(self) -> None:
        """Start the timer. Must be called from within a running event loop."""
        self._scheduler.add_job(
            self._fire,
            self.trigger,
            id=JOB_ID,
            coalesce=True,
            max_instances=1,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("schedule_started", next_fire_time=str(self.next_fire_time))

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("schedule_stopped", fired=self.fired)


def create_timer(
    expr: Optional[str],
    commands: BroadcastChannel[Command],
    timezone: Optional[str] = None,
) -> CronTimer:
    """
    Build a timer for `expr`.

    Raises:
        NoSchedule: `expr` is None or blank (one-shot mode).
        ScheduleError: `expr` is malformed.
    """
    if expr is None or not expr.strip():
        raise NoSchedule("no schedule given")
    return CronTimer(parse_schedule(expr.strip(), timezone), commands)
