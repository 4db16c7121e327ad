from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Optional

import constants as cte
from lotto_analysis.frequencies import backfill, backfill_groups, summarize
from lotto_analysis.games import GameKind
from lotto_analysis.types import (
    DrawResult,
    FrequencyCategory,
    FrequencySummary,
    GenerationMode,
)
from other_utils.date_utils import is_on_or_before
from other_utils.session.types import (
    FrequencyData,
    Lifecycle,
    PagingState,
    Phase,
    SearchState,
    SelectionState,
    SessionState,
)
from web_utils.errors import LottoStatsError
from web_utils.lotto_stats_client import LottoStatsClient

log = logging.getLogger(__name__)

Subscriber = Callable[[SessionState], None]


def _toggle(numbers: frozenset[int], n: int) -> frozenset[int]:
    if n in numbers:
        return numbers - {n}
    if len(numbers) < cte.MAIN_NUMBERS:
        return numbers | {n}
    return numbers


class LotteryController:
    """
    Owns the session state of one game view.

    Intents are coroutines meant to run on a single event loop. Network calls
    run in worker threads and are the only suspension points; every state
    change happens back on the loop and is published as a new immutable
    SessionState to the subscribers.
    """

    def __init__(self, game: GameKind, client: LottoStatsClient, page_size: Optional[int] = None):
        self.game = game
        self.client = client
        self.page_size = page_size or client.config.page_size
        self._state = SessionState()
        self._subscribers: list[Subscriber] = []
        self._load_generation = 0  # bumped by every load_all; older completions are discarded
        self._pending_loads = 0
        self._loading_more = False

    # -----------------------------
    # Published state
    # -----------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register an observer; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        for callback in list(self._subscribers):
            callback(self._state)

    def _fail(self, err: LottoStatsError) -> None:
        log.warning("%s: %s", self.game.display_name, err)
        self._publish(lifecycle=Lifecycle.failed(str(err)))

    async def _io(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(fn, *args)

    # -----------------------------
    # Convenience views
    # -----------------------------

    @property
    def error(self) -> Optional[str]:
        lifecycle = self._state.lifecycle
        return lifecycle.message if lifecycle.phase is Phase.FAILED else None

    @property
    def is_loading(self) -> bool:
        return self._state.lifecycle.phase is Phase.LOADING

    @property
    def can_check_combination(self) -> bool:
        return self._state.selection.can_check

    @property
    def can_search(self) -> bool:
        return self._state.search.can_search

    @property
    def oldest_result_date(self) -> Optional[date]:
        results = self._state.paging.results
        return min(r.draw_date for r in results) if results else None

    @property
    def frequency_summary(self) -> FrequencySummary:
        return summarize(self._state.frequency_data.overall)

    # -----------------------------
    # Loading
    # -----------------------------

    async def load_all(self) -> None:
        """
        Fetch frequencies (overall, special ball, by position) and the first
        page of results concurrently. Nothing is applied unless all four succeed.
        """
        self._load_generation += 1
        generation = self._load_generation
        self._pending_loads += 1
        self._publish(lifecycle=Lifecycle.loading())
        log.info("Loading %s statistics", self.game.display_name)

        try:
            outcomes = await asyncio.gather(
                self._io(self.client.fetch_frequencies, self.game, FrequencyCategory.MAIN),
                self._io(self.client.fetch_frequencies, self.game, FrequencyCategory.SPECIAL),
                self._io(self.client.fetch_position_frequencies, self.game, None),
                self._io(self.client.fetch_latest_results, self.game, 1, self.page_size),
                return_exceptions=True,
            )
        finally:
            self._pending_loads -= 1

        if generation != self._load_generation:
            log.info("Discarding superseded load for %s", self.game.display_name)
            return

        for outcome in outcomes:
            if isinstance(outcome, LottoStatsError):
                self._fail(outcome)
                return
            if isinstance(outcome, BaseException):
                log.error("Unexpected error loading %s", self.game.display_name, exc_info=outcome)
                self._publish(lifecycle=Lifecycle.failed(str(outcome) or type(outcome).__name__))
                raise outcome

        overall, special, positions, first_page = outcomes
        self._publish(
            frequency_data=FrequencyData(
                overall=backfill(overall, self.game.main_numbers()),
                by_position=backfill_groups(positions, self.game.main_numbers()),
                special_ball=backfill(special, self.game.special_balls()),
            ),
            paging=PagingState(results=first_page.results, page=1, has_more=first_page.has_more),
            lifecycle=Lifecycle.loaded(),
        )
        log.info("%s loaded: %d draws, more=%s", self.game.display_name,
                 len(first_page.results), first_page.has_more)

    async def load_more(self) -> None:
        """Append the next page of results. No-op without more pages or while another load runs."""
        paging = self._state.paging
        if not paging.has_more or self._loading_more or self._pending_loads:
            return

        self._loading_more = True
        generation = self._load_generation
        next_page = paging.page + 1
        try:
            page = await self._io(self.client.fetch_latest_results, self.game, next_page, self.page_size)
        except LottoStatsError as e:
            if generation == self._load_generation:
                self._fail(e)
            return
        finally:
            self._loading_more = False

        if generation != self._load_generation:
            # a reload replaced the paging state meanwhile
            return

        current = self._state.paging
        seen = {r.draw_date for r in current.results}
        fresh = tuple(r for r in page.results if r.draw_date not in seen)
        self._publish(paging=PagingState(
            results=current.results + fresh,
            page=next_page,
            has_more=page.has_more,
        ))
        log.debug("Page %d: %d new draws", next_page, len(fresh))

    # -----------------------------
    # Selection
    # -----------------------------

    def toggle_number(self, n: int) -> None:
        if not self.game.is_main_number(n):
            log.debug("Ignoring %s: outside %s main range", n, self.game.display_name)
            return
        selection = self._state.selection
        self._publish(selection=replace(
            selection,
            numbers=_toggle(selection.numbers, n),
            last_check_result=None,
        ))

    def select_special_ball(self, n: int) -> None:
        if not self.game.is_special_ball(n):
            log.debug("Ignoring %s: outside %s range", n, self.game.special_ball_name)
            return
        selection = self._state.selection
        self._publish(selection=replace(
            selection,
            special_ball=None if selection.special_ball == n else n,
            last_check_result=None,
        ))

    async def check_combination(self) -> None:
        selection = self._state.selection
        if not selection.can_check:
            return

        sent = (selection.numbers, selection.special_ball)
        self._publish(lifecycle=Lifecycle.loading())
        try:
            result = await self._io(
                self.client.check_combination, self.game, sorted(selection.numbers), selection.special_ball,
            )
        except LottoStatsError as e:
            self._fail(e)
            return

        current = self._state.selection
        if (current.numbers, current.special_ball) != sent:
            # the selection changed while the request was in flight
            self._publish(lifecycle=Lifecycle.loaded())
            return

        self._publish(
            selection=replace(current, last_check_result=result),
            lifecycle=Lifecycle.loaded(),
        )

    async def generate_combination(self, mode: GenerationMode | str = GenerationMode.OPTIMIZED) -> None:
        mode = GenerationMode(mode)
        self._publish(lifecycle=Lifecycle.loading())
        try:
            generated = await self._io(self.client.generate_combination, self.game, mode)
        except LottoStatsError as e:
            self._fail(e)
            return

        self._publish(
            selection=SelectionState(
                numbers=frozenset(generated.main_numbers),
                special_ball=generated.special_ball,
                last_check_result=None,
                last_generated=generated,
            ),
            lifecycle=Lifecycle.loaded(),
        )
        log.info("Generated %s combination (%s): %s + %s", mode.value, generated.mode.value,
                 sorted(generated.main_numbers), generated.special_ball)

    # -----------------------------
    # Search
    # -----------------------------

    def toggle_search_number(self, n: int) -> None:
        if not self.game.is_main_number(n):
            return
        search = self._state.search
        self._publish(search=replace(search, numbers=_toggle(search.numbers, n)))

    def toggle_search_special_ball(self, n: int) -> None:
        if not self.game.is_special_ball(n):
            return
        search = self._state.search
        self._publish(search=replace(search, special_ball=None if search.special_ball == n else n))

    async def search_winning_numbers(self) -> None:
        search = self._state.search
        if not search.can_search:
            return

        numbers = sorted(search.numbers)
        sent = (search.numbers, search.special_ball)
        self._publish(lifecycle=Lifecycle.loading())
        try:
            result = await self._io(self.client.check_combination, self.game, numbers, search.special_ball)
        except LottoStatsError as e:
            self._fail(e)
            return

        current = self._state.search
        if (current.numbers, current.special_ball) != sent:
            # cleared or edited while the request was in flight
            self._publish(lifecycle=Lifecycle.loaded())
            return

        main_numbers = result.main_numbers or tuple(numbers)
        hits = tuple(
            DrawResult(
                draw_date=m.draw_date,
                main_numbers=main_numbers,
                special_ball=m.special_ball if m.special_ball is not None else search.special_ball,
                prize=m.prize,
            )
            for m in result.matches
        )
        self._publish(
            search=replace(current, active=True, results=hits),
            lifecycle=Lifecycle.loaded(),
        )

    def clear_search(self) -> None:
        self._publish(search=SearchState())

    # -----------------------------
    # Projections
    # -----------------------------

    def filtered_results(self, as_of: date | datetime) -> tuple[DrawResult, ...]:
        """Accumulated draws on or before the end of `as_of`'s day."""
        return tuple(r for r in self._state.paging.results if is_on_or_before(r.draw_date, as_of))
