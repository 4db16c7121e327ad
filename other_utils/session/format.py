from __future__ import annotations

from typing import Iterable, Optional

import constants as cte
from lotto_analysis.frequencies import filter_by_number_text, most_frequent, summarize
from lotto_analysis.games import GameKind
from lotto_analysis.types import CombinationQueryResult, DrawResult, GeneratedCombination, NumberFrequency
from other_utils.session.types import Phase, SessionState


def _fmt_nums(nums: Iterable[int]) -> str:
    return " ".join(f"{n:02d}" for n in nums)


def _fmt_ball(n: Optional[int]) -> str:
    return f"{n:02d}" if n is not None else "--"


def _fmt_freqs(freqs: Iterable[NumberFrequency]) -> str:
    return "  ".join(f"{f.number:02d}:{f.percentage:.1f}%" for f in freqs)


def format_draw(draw: DrawResult, game: GameKind) -> str:
    line = f"{draw.draw_date.isoformat()}  {_fmt_nums(draw.main_numbers)}  {game.special_ball_name} {_fmt_ball(draw.special_ball)}"
    if draw.multiplier is not None:
        line += f"  x{draw.multiplier}"
    if draw.prize:
        line += f"  ({draw.prize})"
    return line


def format_check_result(result: CombinationQueryResult, game: GameKind) -> list[str]:
    if not result.exists:
        return ["❌ Combination never drawn"]
    total = result.total_occurrences if result.total_occurrences is not None else len(result.matches)
    lines = [f"✅ Combination drawn {total} time(s)"]
    for m in result.matches:
        extra = f"  {game.special_ball_name} {_fmt_ball(m.special_ball)}"
        if m.prize:
            extra += f"  ({m.prize})"
        lines.append(f"  📌 {m.draw_date.isoformat()}{extra}")
    return lines


def format_generated(generated: GeneratedCombination, game: GameKind) -> list[str]:
    lines = [
        f"🎲 {generated.mode.value}: {_fmt_nums(sorted(generated.main_numbers))}"
        f"  {game.special_ball_name} {_fmt_ball(generated.special_ball)}"
        + ("  (never drawn)" if generated.is_unique else "")
    ]
    if generated.position_percentages:
        for pos, pct in sorted(generated.position_percentages.items()):
            lines.append(f"  position {pos}: {pct:.2f}%")
    return lines


def format_session(state: SessionState, game: GameKind, top: int = cte.Q_TOP_NUMBERS,
                   number_filter: Optional[str] = None) -> str:
    lines = [f"🎯 {game.display_name.upper()}", ""]

    if state.lifecycle.phase is Phase.FAILED:
        lines.append(f"⚠️ {state.lifecycle.message}")
        lines.append("")

    freqs = state.frequency_data
    if freqs.overall:
        summary = summarize(freqs.overall)
        lines.append(f"Main numbers ({summary.total_numbers}, average {summary.average_percentage:.2f}%)")
        lines.append(f"  top: {_fmt_freqs(most_frequent(freqs.overall, top))}")
        lines.append(f"{game.special_ball_name}")
        lines.append(f"  top: {_fmt_freqs(most_frequent(freqs.special_ball, min(top, 5)))}")
        for group in freqs.by_position:
            best = most_frequent(group.entries, 3)
            lines.append(f"  position {group.position}: {_fmt_freqs(best)}")
        if number_filter:
            matching = filter_by_number_text(freqs.overall, number_filter)
            lines.append(f"Numbers matching {number_filter!r}: {_fmt_freqs(matching) or '(none)'}")
        lines.append("")

    selection = state.selection
    if selection.numbers or selection.special_ball is not None:
        lines.append(f"Selection: {_fmt_nums(sorted(selection.numbers))}  {game.special_ball_name} {_fmt_ball(selection.special_ball)}")
    if selection.last_generated is not None:
        lines.extend(format_generated(selection.last_generated, game))
    if selection.last_check_result is not None:
        lines.extend(format_check_result(selection.last_check_result, game))

    if state.paging.results:
        lines.append("")
        lines.append(f"Latest draws (page {state.paging.page}{', more available' if state.paging.has_more else ''})")
        for draw in state.paging.results:
            lines.append(f"  {format_draw(draw, game)}")

    return "\n".join(lines).rstrip()
