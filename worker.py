"""Scheduled trigger worker – 09:00 / 17:00 briefings and simulated price ticks.

Usage:
    python worker.py              # starts the scheduler (blocks)
    python worker.py --morning    # fires the morning briefing once and exits
    python worker.py --evening    # fires the evening briefing once and exits
"""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from agents.controller import AppController
from config import get_settings
from database.mark_store import MarkStore, get_mark_store
from prompts.system_prompts import EVENING_BRIEFING_PROMPT, MORNING_BRIEFING_PROMPT

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Daily briefing schedule
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BriefingSlot:
    name: str
    hour: int
    minute: int
    mark_key: str
    prompt: str
    title: str


def parse_hhmm(value: str) -> tuple[int, int]:
    hour, minute = value.split(":")
    return int(hour), int(minute)


def default_slots() -> list[BriefingSlot]:
    settings = get_settings()
    morning_h, morning_m = parse_hhmm(settings.morning_briefing_time)
    evening_h, evening_m = parse_hhmm(settings.evening_briefing_time)
    return [
        BriefingSlot("morning", morning_h, morning_m, "last_morning_update",
                     MORNING_BRIEFING_PROMPT, "Bản tin sáng"),
        BriefingSlot("evening", evening_h, evening_m, "last_evening_update",
                     EVENING_BRIEFING_PROMPT, "Tổng kết phiên"),
    ]


class BriefingSchedule:
    """Once-per-day, exact-minute firing guarded by persisted date marks.

    A slot fires only when a tick lands on its exact minute; a missed minute
    means no briefing that day.
    """

    def __init__(self, store: MarkStore, slots: Optional[list[BriefingSlot]] = None):
        self.store = store
        self.slots = slots if slots is not None else default_slots()
        # Guards against repeat firing when the durable store is unreachable
        self._fired: dict[str, str] = {}

    def _read_mark(self, slot: BriefingSlot) -> Optional[str]:
        try:
            return self.store.get(slot.mark_key)
        except Exception:
            logger.warning("Could not read schedule mark %s", slot.mark_key, exc_info=True)
            return None

    def _write_mark(self, slot: BriefingSlot, today: str) -> None:
        try:
            self.store.set(slot.mark_key, today)
        except Exception:
            logger.warning("Could not persist schedule mark %s", slot.mark_key, exc_info=True)

    def due(self, now: datetime) -> list[BriefingSlot]:
        """Slots to fire at ``now``; marks are set before returning."""
        today = now.date().isoformat()
        fired: list[BriefingSlot] = []
        for slot in self.slots:
            if (now.hour, now.minute) != (slot.hour, slot.minute):
                continue
            if self._fired.get(slot.name) == today or self._read_mark(slot) == today:
                continue
            self._fired[slot.name] = today
            self._write_mark(slot, today)
            fired.append(slot)
        return fired


# ─────────────────────────────────────────────────────────────────────────────
# Tick job
# ─────────────────────────────────────────────────────────────────────────────


async def scheduler_tick(
    controller: AppController,
    schedule: BriefingSchedule,
    now: Optional[datetime] = None,
) -> list[BriefingSlot]:
    """One polling step: launch due briefings, then move simulated prices."""
    now = now or datetime.now(ZoneInfo(get_settings().timezone))
    # mark store reads and writes block (Supabase client is synchronous)
    fired = await asyncio.to_thread(schedule.due, now)
    for slot in fired:
        logger.info("⏰ %s briefing triggered at %s", slot.name, now.strftime("%H:%M"))
        controller.spawn(controller.run_briefing(slot.prompt, slot.title))

    controller.simulate_tick()
    return fired


def build_scheduler(controller: AppController, schedule: BriefingSchedule) -> AsyncIOScheduler:
    settings = get_settings()
    scheduler = AsyncIOScheduler(timezone=settings.timezone)
    scheduler.add_job(
        scheduler_tick,
        trigger=IntervalTrigger(seconds=settings.scheduler_interval_seconds),
        args=[controller, schedule],
        id="market_tick",
        name="Briefing check & price simulation",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────


async def _run_forever() -> None:
    controller = AppController()
    scheduler = build_scheduler(controller, BriefingSchedule(get_mark_store()))
    scheduler.start()
    logger.info("Scheduler started – tick every %ss (%s)",
                get_settings().scheduler_interval_seconds, get_settings().timezone)
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


async def _run_once(slot_name: str) -> None:
    slot = next(s for s in default_slots() if s.name == slot_name)
    reply = await AppController().run_briefing(slot.prompt, slot.title)
    print(reply.text)
    for source in reply.sources:
        print(f"- {source.title}: {source.uri}")


if __name__ == "__main__":
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s │ %(name)-25s │ %(levelname)-7s │ %(message)s",
    )
    if "--morning" in sys.argv:
        asyncio.run(_run_once("morning"))
    elif "--evening" in sys.argv:
        asyncio.run(_run_once("evening"))
    else:
        try:
            asyncio.run(_run_forever())
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped.")
