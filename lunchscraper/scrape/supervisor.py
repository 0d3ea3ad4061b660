"""
Lunch Scraper — Scrape Supervisor

Owns one scrape process from startup to exit:

    STARTING -> RUNNING -> DRAINING -> STOPPED

STARTING   resolve every scraper's site id, build the shared CachedClient,
           create the timer (no expression means one-shot), subscribe one
           command receiver per scraper and spawn one task per scraper.
RUNNING    one-shot: broadcast a single RUN and stop after one outcome per
           scraper. Scheduled: the timer broadcasts RUN on every firing and
           the loop runs until the shutdown event is set. Successful
           outcomes are applied to the store one at a time; failures (of a
           scrape or of an apply) are logged and the loop carries on.
DRAINING   stop the timer, broadcast SHUTDOWN, close both channels and wait
           for every scraper task to finish.
STOPPED    close the store and save the response cache (both best-effort),
           then close the HTTP client.

Any failure during STARTING is fatal and raised from run(): a bad cron
expression never degrades to one-shot.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Optional, Protocol, Sequence

import httpx
import structlog

from lunchscraper.config import settings
from lunchscraper.fetch.client import CacheOptions, CachedClient
from lunchscraper.scrape import ScrapeOutcome, SiteScrapeResult
from lunchscraper.scrape.bus import BroadcastChannel, ChannelClosed, Command, ResultChannel
from lunchscraper.scrape.schedule import CronTimer, NoSchedule, create_timer
from lunchscraper.scrape.worker import run_scraper_task
from lunchscraper.scrapers.base import ScraperRegistration, SiteScraper
from lunchscraper.signals import install_shutdown_handlers, remove_shutdown_handlers
from lunchscraper.store.keys import SiteKey

logger = structlog.get_logger(__name__)


class SupervisorState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class ScrapeStore(Protocol):
    """What the supervisor needs from persistence (see store.SiteStore)."""

    async def resolve_site_id(self, key: SiteKey): ...

    async def apply(self, result: SiteScrapeResult) -> None: ...

    async def close(self) -> None: ...


class Supervisor:
    """
    Runs a set of scrapers once, or on a cron schedule, and writes their
    results to the store.

    Usage:
        supervisor = Supervisor(get_registrations(), SiteStore.from_url(), CacheOptions.from_settings())
        ok = await supervisor.run()
    """

    def __init__(
        self,
        registrations: Sequence[ScraperRegistration],
        store: ScrapeStore,
        options: CacheOptions,
        schedule: Optional[str] = None,
        shutdown: Optional[asyncio.Event] = None,
        timezone: Optional[str] = None,
        command_capacity: int = settings.COMMAND_BUS_CAPACITY,
        result_capacity: int = settings.RESULT_CHANNEL_CAPACITY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.registrations = list(registrations)
        self.store = store
        self.options = options
        self.schedule = schedule
        self.shutdown = shutdown or asyncio.Event()
        self.timezone = timezone
        self._transport = transport

        self._commands: BroadcastChannel[Command] = BroadcastChannel(command_capacity)
        self._results: ResultChannel[ScrapeOutcome] = ResultChannel(result_capacity)
        self._client: Optional[CachedClient] = None
        self._timer: Optional[CronTimer] = None
        self._scrapers: list[SiteScraper] = []
        self._tasks: list[asyncio.Task[int]] = []

        self.state = SupervisorState.STARTING
        self.outcomes_received = 0
        self.results_applied = 0
        self.apply_failures = 0
        self.scrape_failures = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> bool:
        """
        Run until done (one-shot) or until the shutdown event is set.

        Returns:
            False if a scraper task died unexpectedly, else True. Failed
            scrapes and failed applies do not count as unexpected deaths.

        Raises:
            Any startup failure: unknown site, malformed schedule, ...
        """
        self._set_state(SupervisorState.STARTING)
        try:
            await self._start()
        except BaseException as e:
            logger.error("supervisor_startup_failed", error=str(e), error_type=type(e).__name__)
            await self._stop()
            raise

        self._set_state(SupervisorState.RUNNING)
        try:
            await self._serve()
        finally:
            self._set_state(SupervisorState.DRAINING)
            healthy = await self._drain()
            await self._stop()
        return healthy

    async def _start(self) -> None:
        site_ids = []
        for reg in self.registrations:
            site_ids.append(await self.store.resolve_site_id(reg.key))

        # Before CachedClient.build: a bad schedule must not touch the cache file
        try:
            self._timer = create_timer(self.schedule, self._commands, self.timezone)
        except NoSchedule:
            logger.info("supervisor_one_shot_mode", scrapers=len(self.registrations))
            self._timer = None

        self._client = CachedClient.build(self.options, transport=self._transport)
        self._scrapers = [
            reg.build(self._client, site_id)
            for reg, site_id in zip(self.registrations, site_ids)
        ]

        receivers = [self._commands.subscribe() for _ in self._scrapers]
        if self._timer is not None:
            self._timer.start()

        self._tasks = [
            asyncio.create_task(run_scraper_task(scraper, rx, self._results), name=scraper.name)
            for scraper, rx in zip(self._scrapers, receivers)
        ]
        logger.info(
            "supervisor_started",
            scrapers=[s.name for s in self._scrapers],
            schedule=self.schedule if self._timer is not None else None,
        )

    async def _serve(self) -> None:
        expected: Optional[int] = None
        if self._timer is None:
            expected = len(self._tasks)
            self._commands.send(Command.RUN)

        live = set(self._tasks)
        shutdown_wait = asyncio.create_task(self.shutdown.wait())
        try:
            while expected is None or self.outcomes_received < expected:
                if self.shutdown.is_set():
                    logger.info("supervisor_shutdown_requested")
                    break
                if not live and not len(self._results):
                    logger.warning("supervisor_no_scrapers_left")
                    break

                recv = asyncio.create_task(self._results.recv())
                done, _ = await asyncio.wait(
                    {recv, shutdown_wait, *live}, return_when=asyncio.FIRST_COMPLETED
                )

                # A task only ends during RUNNING if its scraper escaped the
                # per-run error boundary; it owes no further outcomes.
                for task in done & live:
                    live.discard(task)
                    logger.error("scraper_task_exited_early", scraper=task.get_name())
                    if expected is not None:
                        expected -= 1

                if recv not in done:
                    recv.cancel()
                    await asyncio.gather(recv, return_exceptions=True)
                    if recv.cancelled() or recv.exception() is not None:
                        continue

                try:
                    outcome = recv.result()
                except ChannelClosed:
                    break
                await self._handle(outcome)
        finally:
            shutdown_wait.cancel()

        logger.info(
            "supervisor_run_loop_finished",
            outcomes=self.outcomes_received,
            applied=self.results_applied,
            scrape_failures=self.scrape_failures,
            apply_failures=self.apply_failures,
        )

    async def _handle(self, outcome: ScrapeOutcome) -> None:
        self.outcomes_received += 1
        if not outcome.ok:
            self.scrape_failures += 1
            logger.warning(
                "scrape_failed",
                scraper=outcome.scraper,
                error=outcome.error,
                error_type=outcome.error_type,
            )
            return

        result = outcome.result
        try:
            await self.store.apply(result)
        except Exception as e:
            self.apply_failures += 1
            logger.error(
                "scrape_result_apply_failed",
                scraper=outcome.scraper,
                site_id=str(result.site_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        self.results_applied += 1
        logger.info(
            "scrape_result_applied",
            scraper=outcome.scraper,
            site_id=str(result.site_id),
            restaurants=result.num_restaurants,
            dishes=result.num_dishes,
        )

    async def _drain(self) -> bool:
        if self._timer is not None:
            self._timer.shutdown()

        if not self._commands.closed:
            self._commands.send(Command.SHUTDOWN)
            self._commands.close()
        await self._results.close()

        healthy = True
        exits = await asyncio.gather(*self._tasks, return_exceptions=True)
        for task, exit_value in zip(self._tasks, exits):
            if isinstance(exit_value, BaseException):
                healthy = False
                logger.error(
                    "scraper_task_died",
                    scraper=task.get_name(),
                    error=str(exit_value),
                    error_type=type(exit_value).__name__,
                )
        logger.info("supervisor_drained", tasks=len(self._tasks), healthy=healthy)
        return healthy

    async def _stop(self) -> None:
        try:
            await self.store.close()
        except Exception as e:
            logger.error("store_close_failed", error=str(e), error_type=type(e).__name__)

        if self._client is not None:
            try:
                await self._client.save()
            except Exception as e:
                logger.error("cache_save_failed", error=str(e), error_type=type(e).__name__)
            await self._client.aclose()

        self._set_state(SupervisorState.STOPPED)

    def _set_state(self, state: SupervisorState) -> None:
        if state is not self.state:
            logger.debug("supervisor_state_changed", old=self.state.value, new=state.value)
        self.state = state


async def run_scrape(
    registrations: Sequence[ScraperRegistration],
    store: ScrapeStore,
    options: CacheOptions,
    schedule: Optional[str] = None,
    timezone: Optional[str] = None,
) -> bool:
    """Run a Supervisor that stops on SIGINT/SIGTERM/SIGHUP/SIGQUIT."""
    shutdown = asyncio.Event()
    install_shutdown_handlers(shutdown)
    supervisor = Supervisor(
        registrations,
        store,
        options,
        schedule=schedule,
        shutdown=shutdown,
        timezone=timezone,
    )
    try:
        return await supervisor.run()
    finally:
        remove_shutdown_handlers()
