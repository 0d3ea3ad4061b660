"""
Lunch Scraper — Scraper Task Loop

Each scraper runs in its own asyncio task, waiting for commands from the
broadcast bus and pushing one ScrapeOutcome per Command.RUN onto the result
channel. A failing run is reported, never raised: the loop keeps listening.
"""

from __future__ import annotations

import time

import structlog

from lunchscraper.scrape import ScrapeOutcome
from lunchscraper.scrape.bus import ChannelClosed, Command, Lagged, ResultChannel, Subscription
from lunchscraper.scrapers.base import SiteScraper

logger = structlog.get_logger(__name__)


async def scrape_once(scraper: SiteScraper) -> ScrapeOutcome:
    """Run `scraper` once, turning any error into a failure outcome."""
    start = time.monotonic()
    try:
        result = await scraper.run()
    except Exception as e:
        logger.warning(
            "scraper_run_failed",
            scraper=scraper.name,
            error=str(e),
            error_type=type(e).__name__,
            elapsed_seconds=round(time.monotonic() - start, 3),
        )
        return ScrapeOutcome.failure(scraper.name, e)

    logger.info(
        "scraper_run_complete",
        scraper=scraper.name,
        site_id=str(result.site_id),
        restaurants=result.num_restaurants,
        dishes=result.num_dishes,
        elapsed_seconds=round(time.monotonic() - start, 3),
    )
    return ScrapeOutcome.success(scraper.name, result)


async def run_scraper_task(
    scraper: SiteScraper,
    commands: Subscription[Command],
    results: ResultChannel[ScrapeOutcome],
) -> int:
    """
    Serve commands for one scraper until shutdown.

    Exits on Command.SHUTDOWN, on a closed command bus, or when the result
    channel is closed (nobody left to report to).

    Returns:
        Number of runs performed.
    """
    runs = 0
    logger.debug("scraper_task_started", scraper=scraper.name)
    try:
        while True:
            try:
                command = await commands.recv()
            except Lagged as e:
                logger.warning("scraper_task_lagged", scraper=scraper.name, missed=e.missed)
                continue
            except ChannelClosed:
                logger.debug("scraper_task_commands_closed", scraper=scraper.name)
                break

            if command is Command.SHUTDOWN:
                logger.debug("scraper_task_shutdown", scraper=scraper.name)
                break

            outcome = await scrape_once(scraper)
            runs += 1
            try:
                await results.send(outcome)
            except ChannelClosed:
                logger.debug("scraper_task_results_closed", scraper=scraper.name)
                break
    finally:
        commands.close()
        logger.debug("scraper_task_stopped", scraper=scraper.name, runs=runs)
    return runs
