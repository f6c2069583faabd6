import threading
from datetime import datetime, timedelta

from agents.controller import AppController
from database.mark_store import InMemoryMarkStore
from prompts.system_prompts import EVENING_BRIEFING_PROMPT, MORNING_BRIEFING_PROMPT
from worker import BriefingSchedule, parse_hhmm, scheduler_tick
from conftest import FakeLLM


class BrokenStore:
    def get(self, key):
        raise ConnectionError("db down")

    def set(self, key, value):
        raise ConnectionError("db down")


def test_parse_hhmm():
    assert parse_hhmm("09:00") == (9, 0)
    assert parse_hhmm("17:30") == (17, 30)


def test_morning_fires_once_per_day(mark_store):
    schedule = BriefingSchedule(mark_store)
    start = datetime(2026, 10, 19, 9, 0, 0)

    fired = [slot.name for s in range(0, 60, 2) for slot in schedule.due(start + timedelta(seconds=s))]

    assert fired == ["morning"]
    assert mark_store.get("last_morning_update") == "2026-10-19"

    assert [s.name for s in schedule.due(datetime(2026, 10, 20, 9, 0, 4))] == ["morning"]
    assert mark_store.get("last_morning_update") == "2026-10-20"


def test_only_exact_minute_fires(mark_store):
    schedule = BriefingSchedule(mark_store)

    assert schedule.due(datetime(2026, 10, 19, 8, 59, 58)) == []
    assert schedule.due(datetime(2026, 10, 19, 9, 1, 0)) == []
    assert [s.name for s in schedule.due(datetime(2026, 10, 19, 17, 0, 0))] == ["evening"]


def test_mark_from_previous_process_blocks_refire():
    store = InMemoryMarkStore({"last_evening_update": "2026-10-19"})

    assert BriefingSchedule(store).due(datetime(2026, 10, 19, 17, 0, 30)) == []


def test_unreachable_store_still_fires_once():
    schedule = BriefingSchedule(BrokenStore())
    now = datetime(2026, 10, 19, 9, 0, 0)

    assert len(schedule.due(now)) == 1
    assert schedule.due(now + timedelta(seconds=2)) == []


async def test_tick_appends_one_briefing_and_moves_prices(mark_store, rng):
    llm = FakeLLM(["Bản tin sáng: VN-Index tăng nhẹ."])
    controller = AppController(generate=llm, rng=rng)
    schedule = BriefingSchedule(mark_store)
    prices_before = dict(controller.state.prices)
    count_before = len(controller.state.messages)

    await scheduler_tick(controller, schedule, now=datetime(2026, 10, 19, 9, 0, 0))
    await scheduler_tick(controller, schedule, now=datetime(2026, 10, 19, 9, 0, 2))
    await controller.drain()

    new_messages = controller.state.messages[count_before:]
    assert [m.text for m in new_messages] == ["Bản tin sáng: VN-Index tăng nhẹ."]
    assert new_messages[0].role == "model"
    assert len(llm.calls) == 1
    assert MORNING_BRIEFING_PROMPT in llm.calls[0]["prompt"]
    assert controller.state.prices != prices_before


async def test_failed_briefing_becomes_apology(mark_store, rng):
    controller = AppController(generate=FakeLLM(error=RuntimeError("down")), rng=rng)

    fired = await scheduler_tick(controller, BriefingSchedule(mark_store), now=datetime(2026, 10, 19, 17, 0, 0))
    await controller.drain()

    assert [s.prompt for s in fired] == [EVENING_BRIEFING_PROMPT]
    last = controller.state.messages[-1]
    assert last.role == "model"
    assert "lỗi" in last.text
    assert last.sources == []


async def test_tick_reads_marks_off_the_event_loop(rng):
    seen = []

    class RecordingStore(InMemoryMarkStore):
        def get(self, key):
            seen.append(threading.current_thread())
            return super().get(key)

    controller = AppController(generate=FakeLLM(), rng=rng)

    await scheduler_tick(controller, BriefingSchedule(RecordingStore()), now=datetime(2026, 10, 19, 9, 0, 0))
    await controller.drain()

    assert seen and threading.main_thread() not in seen
