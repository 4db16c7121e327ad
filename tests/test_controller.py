import asyncio
import threading
from datetime import date, datetime

import pytest

from lotto_analysis.games import MEGA_MILLIONS
from lotto_analysis.types import GenerationMode
from other_utils.session import LotteryController, Phase, SearchState
from tests.conftest import load_fixture

LATEST = "/mega-millions/latest-combinations"


def run(coro):
    return asyncio.run(coro)


# -----------------------------
# Selection
# -----------------------------

def test_toggle_number_caps_at_five(controller):
    for n in (1, 2, 3, 4, 5, 6):
        controller.toggle_number(n)

    assert controller.state.selection.numbers == {1, 2, 3, 4, 5}

    controller.toggle_number(6)
    controller.toggle_number(6)
    assert controller.state.selection.numbers == {1, 2, 3, 4, 5}


def test_toggle_number_removes_even_when_full(controller):
    for n in (1, 2, 3, 4, 5):
        controller.toggle_number(n)

    controller.toggle_number(3)

    assert controller.state.selection.numbers == {1, 2, 4, 5}


def test_toggle_number_ignores_out_of_range(controller):
    controller.toggle_number(71)
    controller.toggle_number(0)
    assert controller.state.selection.numbers == frozenset()


def test_select_special_ball_toggles(controller):
    controller.select_special_ball(13)
    assert controller.state.selection.special_ball == 13

    controller.select_special_ball(10)
    assert controller.state.selection.special_ball == 10

    controller.select_special_ball(10)
    assert controller.state.selection.special_ball is None


def test_selection_change_clears_check_result(controller):
    for n in (4, 8, 11, 32, 52):
        controller.toggle_number(n)
    controller.select_special_ball(13)
    run(controller.check_combination())
    assert controller.state.selection.last_check_result is not None

    controller.toggle_number(52)
    assert controller.state.selection.last_check_result is None


def test_check_combination_scenario(controller, mega_session):
    for n in (52, 4, 32, 8, 11):
        controller.toggle_number(n)
    controller.select_special_ball(13)
    assert controller.can_check_combination

    run(controller.check_combination())

    sent = mega_session.calls_to("/mega-millions/check-combination")[-1]["json"]
    assert sent == {"numbers": [4, 8, 11, 32, 52], "special_ball": 13}
    result = controller.state.selection.last_check_result
    assert result.exists is True
    assert [m.draw_date for m in result.matches] == [date(2025, 2, 25)]
    assert controller.state.lifecycle.phase is Phase.LOADED


def test_check_combination_requires_full_selection(controller, mega_session):
    for n in (4, 8, 11, 32, 52):
        controller.toggle_number(n)

    run(controller.check_combination())

    assert mega_session.calls == []
    assert controller.state.lifecycle.phase is Phase.IDLE


def test_check_combination_failure(controller, mega_session):
    mega_session.route("POST", "/mega-millions/check-combination", (500, {"success": False, "message": "boom"}))
    for n in (4, 8, 11, 32, 52):
        controller.toggle_number(n)
    controller.select_special_ball(13)

    run(controller.check_combination())

    assert controller.state.lifecycle.phase is Phase.FAILED
    assert controller.error == "boom"
    assert controller.state.selection.last_check_result is None


def test_generate_optimized_replaces_selection(controller):
    controller.toggle_number(60)
    controller.select_special_ball(20)

    run(controller.generate_combination(GenerationMode.OPTIMIZED))

    selection = controller.state.selection
    assert selection.numbers == {1, 2, 3, 4, 5}
    assert selection.special_ball == 10
    assert selection.last_generated.mode is GenerationMode.OPTIMIZED
    assert selection.last_generated.position_percentages == {"1": 3.0}
    assert controller.state.lifecycle.phase is Phase.LOADED


def test_generate_random_is_classified_random(controller, mega_session):
    mega_session.route("GET", "/mega-millions/generate-random", (200, {
        "success": True, "data": {"main_numbers": [7, 14, 21, 28, 35], "mega_ball": 9, "is_unique": False},
    }))

    run(controller.generate_combination("random"))

    assert controller.state.selection.special_ball == 9
    assert controller.state.selection.last_generated.mode is GenerationMode.RANDOM


# -----------------------------
# Loading
# -----------------------------

def test_load_all_merges_everything(controller, mega_session):
    seen = []
    controller.subscribe(lambda state: seen.append(state.lifecycle.phase))

    run(controller.load_all())

    state = controller.state
    assert state.lifecycle.phase is Phase.LOADED
    assert seen[0] is Phase.LOADING and seen[-1] is Phase.LOADED
    assert [f.number for f in state.frequency_data.overall] == list(range(1, 71))
    assert state.frequency_data.overall[3].percentage == 2.4
    assert state.frequency_data.overall[1].count == 0
    assert [f.number for f in state.frequency_data.special_ball] == list(range(1, 26))
    assert [g.position for g in state.frequency_data.by_position] == [1, 2, 5]
    assert state.paging.page == 1
    assert state.paging.has_more is True
    assert [r.draw_date for r in state.paging.results] == [date(2025, 2, 25), date(2025, 2, 21), date(2025, 2, 18)]
    assert len(mega_session.calls) == 4
    assert controller.frequency_summary.top.number == 11


def test_load_all_failure_keeps_previous_data(controller, mega_session):
    run(controller.load_all())
    before_freqs = controller.state.frequency_data
    before_paging = controller.state.paging

    mega_session.route("GET", "/mega-millions/position-frequencies", (503, {"success": False, "message": "Maintenance"}))
    run(controller.load_all())

    assert controller.state.lifecycle.phase is Phase.FAILED
    assert controller.error == "Maintenance"
    assert controller.state.frequency_data is before_freqs
    assert controller.state.paging is before_paging


def test_load_all_failure_from_idle(controller, mega_session):
    mega_session.route("GET", LATEST, (500, {"success": False, "message": "down"}))

    run(controller.load_all())

    assert controller.state.lifecycle.phase is Phase.FAILED
    assert controller.state.paging.results == ()
    assert controller.state.frequency_data.overall == ()


def test_load_all_can_rerun_after_failure(controller, mega_session):
    good = mega_session.routes[("GET", LATEST)]
    mega_session.route("GET", LATEST, (500, {"success": False, "message": "down"}))
    run(controller.load_all())
    assert controller.state.lifecycle.phase is Phase.FAILED

    mega_session.route("GET", LATEST, good)
    run(controller.load_all())
    assert controller.state.lifecycle.phase is Phase.LOADED


def test_load_more_appends_without_duplicates(controller, mega_session):
    run(controller.load_all())

    run(controller.load_more())

    paging = controller.state.paging
    assert [r.draw_date.isoformat() for r in paging.results] == [
        "2025-02-25", "2025-02-21", "2025-02-18", "2025-02-14", "2025-02-11",
    ]
    assert paging.page == 2
    assert paging.has_more is False
    assert controller.oldest_result_date == date(2025, 2, 11)

    run(controller.load_more())
    assert len(mega_session.calls_to(LATEST)) == 2


def test_load_more_failure_keeps_results(controller, mega_session):
    run(controller.load_all())
    mega_session.route("GET", LATEST, (500, {"success": False, "message": "page gone"}))

    run(controller.load_more())

    assert controller.state.lifecycle.phase is Phase.FAILED
    assert len(controller.state.paging.results) == 3
    assert controller.state.paging.page == 1


def test_load_more_does_not_enter_loading(controller):
    run(controller.load_all())
    phases = []
    controller.subscribe(lambda state: phases.append(state.lifecycle.phase))

    run(controller.load_more())

    assert Phase.LOADING not in phases


def test_superseded_load_all_is_discarded(controller, mega_session):
    gate = threading.Event()
    first_page = load_fixture("mega_millions_latest_page1.json")
    stale_page = load_fixture("mega_millions_latest_page2.json")
    calls = []

    def latest(params, body):
        calls.append(params)
        if len(calls) == 1:
            gate.wait(timeout=5)
            return 200, stale_page
        return 200, first_page

    mega_session.route("GET", LATEST, latest)

    async def scenario():
        older = asyncio.create_task(controller.load_all())
        await asyncio.sleep(0.1)
        await controller.load_all()
        gate.set()
        await older

    run(scenario())

    assert controller.state.lifecycle.phase is Phase.LOADED
    assert controller.state.paging.results[0].draw_date == date(2025, 2, 25)
    assert controller.state.paging.has_more is True


# -----------------------------
# Search and projections
# -----------------------------

def test_search_flow(controller, mega_session):
    for n in (52, 4, 32, 8, 11):
        controller.toggle_search_number(n)
    controller.toggle_search_number(60)
    assert controller.state.search.numbers == {4, 8, 11, 32, 52}
    assert controller.can_search
    assert controller.state.selection.numbers == frozenset()

    run(controller.search_winning_numbers())

    search = controller.state.search
    assert search.active is True
    assert mega_session.calls[-1]["json"] == {"numbers": [4, 8, 11, 32, 52]}
    assert len(search.results) == 1
    hit = search.results[0]
    assert hit.draw_date == date(2025, 2, 25)
    assert hit.main_numbers == (4, 8, 11, 32, 52)
    assert hit.special_ball == 13


def test_search_sends_optional_special_ball(controller, mega_session):
    for n in (4, 8, 11, 32, 52):
        controller.toggle_search_number(n)
    controller.toggle_search_special_ball(13)

    run(controller.search_winning_numbers())

    assert mega_session.calls[-1]["json"] == {"numbers": [4, 8, 11, 32, 52], "special_ball": 13}


def test_search_requires_five_numbers(controller, mega_session):
    controller.toggle_search_number(4)
    run(controller.search_winning_numbers())
    assert mega_session.calls == []


def test_clear_search(controller):
    for n in (4, 8, 11, 32, 52):
        controller.toggle_search_number(n)
    controller.toggle_search_special_ball(13)
    run(controller.search_winning_numbers())

    controller.clear_search()

    assert controller.state.search == SearchState()


def test_filtered_results_is_inclusive_and_ignores_search(controller):
    run(controller.load_all())
    run(controller.load_more())
    for n in (4, 8, 11, 32, 52):
        controller.toggle_search_number(n)
    before = controller.state

    same_day = controller.filtered_results(date(2025, 2, 18))
    late_evening = controller.filtered_results(datetime(2025, 2, 21, 23, 30))

    assert [r.draw_date.isoformat() for r in same_day] == ["2025-02-18", "2025-02-14", "2025-02-11"]
    assert [r.draw_date.isoformat() for r in late_evening][0] == "2025-02-21"
    assert controller.filtered_results(date(2024, 1, 1)) == ()
    assert controller.state is before


def test_unsubscribe(controller):
    seen = []
    unsubscribe = controller.subscribe(seen.append)
    controller.toggle_number(1)
    unsubscribe()
    controller.toggle_number(2)

    assert len(seen) == 1
    assert seen[0].selection.numbers == {1}


def test_controller_uses_client_page_size(mega_session, client):
    controller = LotteryController(MEGA_MILLIONS, client, page_size=7)
    run(controller.load_all())
    assert mega_session.calls_to(LATEST)[0]["params"] == {"page": 1, "page_size": 7}


# -----------------------------
# Requests still in flight when state changes
# -----------------------------

def gated(gate, payload):
    def respond(params, body):
        gate.wait(timeout=5)
        return 200, payload
    return respond


def test_check_result_dropped_when_selection_changes_in_flight(controller, mega_session):
    gate = threading.Event()
    mega_session.route("POST", "/mega-millions/check-combination",
                       gated(gate, load_fixture("mega_millions_check_combination.json")))
    for n in (4, 8, 11, 32, 52):
        controller.toggle_number(n)
    controller.select_special_ball(13)

    async def scenario():
        pending = asyncio.create_task(controller.check_combination())
        await asyncio.sleep(0.05)
        controller.toggle_number(52)
        gate.set()
        await pending

    run(scenario())

    selection = controller.state.selection
    assert selection.numbers == {4, 8, 11, 32}
    assert selection.last_check_result is None
    assert controller.state.lifecycle.phase is Phase.LOADED


def test_check_result_dropped_when_generation_replaces_selection(controller, mega_session):
    gate = threading.Event()
    mega_session.route("POST", "/mega-millions/check-combination",
                       gated(gate, load_fixture("mega_millions_check_combination.json")))
    for n in (4, 8, 11, 32, 52):
        controller.toggle_number(n)
    controller.select_special_ball(13)

    async def scenario():
        pending = asyncio.create_task(controller.check_combination())
        await asyncio.sleep(0.05)
        await controller.generate_combination(GenerationMode.OPTIMIZED)
        gate.set()
        await pending

    run(scenario())

    selection = controller.state.selection
    assert selection.numbers == {1, 2, 3, 4, 5}
    assert selection.last_check_result is None


def test_search_hits_dropped_after_clear_search(controller, mega_session):
    gate = threading.Event()
    mega_session.route("POST", "/mega-millions/check-combination",
                       gated(gate, load_fixture("mega_millions_check_combination.json")))
    for n in (4, 8, 11, 32, 52):
        controller.toggle_search_number(n)

    async def scenario():
        pending = asyncio.create_task(controller.search_winning_numbers())
        await asyncio.sleep(0.05)
        controller.clear_search()
        gate.set()
        await pending

    run(scenario())

    assert controller.state.search == SearchState()
    assert controller.state.lifecycle.phase is Phase.LOADED


def test_search_hits_dropped_after_search_edit(controller, mega_session):
    gate = threading.Event()
    mega_session.route("POST", "/mega-millions/check-combination",
                       gated(gate, load_fixture("mega_millions_check_combination.json")))
    for n in (4, 8, 11, 32, 52):
        controller.toggle_search_number(n)

    async def scenario():
        pending = asyncio.create_task(controller.search_winning_numbers())
        await asyncio.sleep(0.05)
        controller.toggle_search_special_ball(7)
        gate.set()
        await pending

    run(scenario())

    search = controller.state.search
    assert search.special_ball == 7
    assert search.active is False
    assert search.results == ()


def test_concurrent_load_more_fetches_page_once(controller, mega_session):
    run(controller.load_all())
    gate = threading.Event()
    mega_session.route("GET", LATEST, gated(gate, load_fixture("mega_millions_latest_page2.json")))

    async def scenario():
        first = asyncio.create_task(controller.load_more())
        await asyncio.sleep(0.05)
        await controller.load_more()
        gate.set()
        await first

    run(scenario())

    page_requests = [c for c in mega_session.calls_to(LATEST) if c["params"]["page"] == 2]
    assert len(page_requests) == 1
    assert controller.state.paging.page == 2
    assert len(controller.state.paging.results) == 5


def test_load_more_is_noop_while_load_all_pending(controller, mega_session):
    run(controller.load_all())
    gate = threading.Event()
    mega_session.route("GET", LATEST, gated(gate, load_fixture("mega_millions_latest_page1.json")))

    async def scenario():
        reload = asyncio.create_task(controller.load_all())
        await asyncio.sleep(0.05)
        await controller.load_more()
        gate.set()
        await reload

    run(scenario())

    pages = [c["params"]["page"] for c in mega_session.calls_to(LATEST)]
    assert pages == [1, 1]
    assert controller.state.paging.page == 1


def test_unexpected_error_in_load_all_marks_failed(controller, mega_session):
    mega_session.route("GET", "/mega-millions/position-frequencies", RuntimeError("decoder bug"))

    with pytest.raises(RuntimeError):
        run(controller.load_all())

    assert controller.state.lifecycle.phase is Phase.FAILED
    assert controller.error == "decoder bug"
