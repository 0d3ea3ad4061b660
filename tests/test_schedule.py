"""
Tests for the cron scheduler (lunchscraper/scrape/schedule.py).
"""

from __future__ import annotations

import asyncio

import pytest
from apscheduler.triggers.cron import CronTrigger

from lunchscraper.scrape.bus import BroadcastChannel, Command
from lunchscraper.scrape.schedule import (
    NoSchedule,
    ScheduleError,
    create_timer,
    parse_schedule,
)


class TestParseSchedule:
    def test_five_field_crontab(self) -> None:
        trigger = parse_schedule("30 10 * * mon-fri", "Europe/Stockholm")
        assert isinstance(trigger, CronTrigger)
        assert str(trigger.timezone) == "Europe/Stockholm"

    def test_six_fields_with_seconds(self) -> None:
        trigger = parse_schedule("0 30 10 * * mon-fri", "UTC")
        fields = {f.name: str(f) for f in trigger.fields}
        assert fields["second"] == "0"
        assert fields["minute"] == "30"
        assert fields["hour"] == "10"
        assert fields["day_of_week"] == "mon-fri"

    def test_seven_fields_with_year(self) -> None:
        trigger = parse_schedule("0 0 12 1 1 * 2030", "UTC")
        fields = {f.name: str(f) for f in trigger.fields}
        assert fields["year"] == "2030"

    @pytest.mark.parametrize(
        "expr",
        [
            "* * *",
            "1 2 3 4 5 6 7 8",
            "61 * * * *",
            "not a cron at all",
        ],
    )
    def test_malformed_expression(self, expr: str) -> None:
        with pytest.raises(ScheduleError):
            parse_schedule(expr, "UTC")

    def test_unknown_timezone(self) -> None:
        with pytest.raises(ScheduleError):
            parse_schedule("0 9 * * *", "Mars/Olympus_Mons")


class TestCreateTimer:
    @pytest.mark.parametrize("expr", [None, "", "   "])
    def test_absent_expression_means_no_schedule(self, expr) -> None:
        with pytest.raises(NoSchedule):
            create_timer(expr, BroadcastChannel(1))

    def test_malformed_expression_is_not_no_schedule(self) -> None:
        with pytest.raises(ScheduleError) as exc:
            create_timer("bogus", BroadcastChannel(1), "UTC")
        assert not isinstance(exc.value, NoSchedule)

    @pytest.mark.asyncio
    async def test_fire_sends_one_run(self) -> None:
        commands: BroadcastChannel[Command] = BroadcastChannel(4)
        sub = commands.subscribe()
        timer = create_timer("0 9 * * *", commands, "UTC")

        await timer._fire()

        assert timer.fired == 1
        assert await sub.recv() is Command.RUN

    @pytest.mark.asyncio
    async def test_fire_after_close_is_ignored(self) -> None:
        commands: BroadcastChannel[Command] = BroadcastChannel(4)
        timer = create_timer("0 9 * * *", commands, "UTC")
        commands.close()

        await timer._fire()

        assert timer.fired == 0

    @pytest.mark.asyncio
    async def test_running_timer_broadcasts_run(self) -> None:
        commands: BroadcastChannel[Command] = BroadcastChannel(4)
        sub = commands.subscribe()
        timer = create_timer("* * * * * *", commands, "UTC")

        timer.start()
        try:
            assert timer.running
            assert timer.next_fire_time is not None
            assert await asyncio.wait_for(sub.recv(), timeout=3) is Command.RUN
        finally:
            timer.shutdown()
        assert not timer.running
