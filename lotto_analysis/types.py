from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


# -----------------------------
# Enumerations used in requests
# -----------------------------

class FrequencyCategory(str, Enum):
    MAIN = "main"
    SPECIAL = "special"


class GenerationMode(str, Enum):
    OPTIMIZED = "optimized"
    RANDOM = "random"

    @property
    def endpoint(self) -> str:
        return f"generate-{self.value}"


# -----------------------------
# Domain models
# -----------------------------

@dataclass(frozen=True)
class DrawResult:
    draw_date: date  # identity key, one draw per date and game
    main_numbers: tuple[int, ...]  # len=5, distinct, in server order
    special_ball: Optional[int]  # None only for search matches that omit it
    multiplier: Optional[int] = None  # None only for records built from search matches
    prize: Optional[str] = None


@dataclass(frozen=True)
class NumberFrequency:
    number: int
    count: int
    percentage: float  # 0..100


@dataclass(frozen=True)
class PositionFrequencyGroup:
    position: int  # 1-based
    entries: tuple[NumberFrequency, ...]


@dataclass(frozen=True)
class CombinationMatch:
    draw_date: date
    special_ball: Optional[int] = None
    prize: Optional[str] = None


@dataclass(frozen=True)
class CombinationQueryResult:
    exists: bool
    total_occurrences: Optional[int] = None
    matches: tuple[CombinationMatch, ...] = ()
    main_numbers: tuple[int, ...] = ()


@dataclass(frozen=True)
class GeneratedCombination:
    main_numbers: tuple[int, ...]
    special_ball: int
    position_percentages: Optional[dict[str, float]] = None
    is_unique: bool = False

    @property
    def mode(self) -> GenerationMode:
        # Only the optimized generator reports per-position percentages.
        if self.position_percentages is not None:
            return GenerationMode.OPTIMIZED
        return GenerationMode.RANDOM


@dataclass(frozen=True)
class ResultsPage:
    results: tuple[DrawResult, ...]
    page: int
    has_more: bool


@dataclass(frozen=True)
class FrequencySummary:
    total_numbers: int
    top: Optional[NumberFrequency]
    average_percentage: float
