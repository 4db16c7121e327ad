from __future__ import annotations

from dataclasses import dataclass

import constants as cte


@dataclass(frozen=True)
class GameKind:
    """Static description of one supported game: number ranges and wire names."""

    key: str
    display_name: str
    main_number_range: tuple[int, int]  # inclusive
    special_ball_range: tuple[int, int]  # inclusive
    special_ball_name: str
    special_ball_field: str
    endpoint_slug: str
    main_number_count: int = cte.MAIN_NUMBERS

    def main_numbers(self) -> range:
        lo, hi = self.main_number_range
        return range(lo, hi + 1)

    def special_balls(self) -> range:
        lo, hi = self.special_ball_range
        return range(lo, hi + 1)

    def is_main_number(self, n: int) -> bool:
        lo, hi = self.main_number_range
        return lo <= n <= hi

    def is_special_ball(self, n: int) -> bool:
        lo, hi = self.special_ball_range
        return lo <= n <= hi


MEGA_MILLIONS = GameKind(
    key=cte.MEGA_MILLIONS,
    display_name="Mega Millions",
    main_number_range=(1, 70),
    special_ball_range=(1, 25),
    special_ball_name="Mega Ball",
    special_ball_field=cte.MEGABALL_FIELD,
    endpoint_slug="mega-millions",
)

POWERBALL = GameKind(
    key=cte.POWERBALL,
    display_name="Powerball",
    main_number_range=(1, 69),
    special_ball_range=(1, 26),
    special_ball_name="Powerball",
    special_ball_field=cte.POWERBALL_FIELD,
    endpoint_slug="powerball",
)

GAMES: dict[str, GameKind] = {g.key: g for g in (MEGA_MILLIONS, POWERBALL)}


def get_game(name: str) -> GameKind:
    """
    Resolve a game by its key (mega_millions) or its slug (mega-millions).
    :raises KeyError: if the name matches no game
    """
    wanted = name.strip().lower()
    for game in GAMES.values():
        if wanted in (game.key, game.endpoint_slug):
            return game
    raise KeyError(f"Unknown game: {name!r}")
