from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import constants as cte
from lotto_analysis.types import (
    CombinationQueryResult,
    DrawResult,
    GeneratedCombination,
    NumberFrequency,
    PositionFrequencyGroup,
)


# -----------------------------
# View lifecycle
# -----------------------------

class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class Lifecycle:
    phase: Phase = Phase.IDLE
    message: Optional[str] = None  # only set when phase is FAILED

    @classmethod
    def loading(cls) -> "Lifecycle":
        return cls(Phase.LOADING)

    @classmethod
    def loaded(cls) -> "Lifecycle":
        return cls(Phase.LOADED)

    @classmethod
    def failed(cls, message: str) -> "Lifecycle":
        return cls(Phase.FAILED, message)


# -----------------------------
# Session sub-states (snapshots, never mutated in place)
# -----------------------------

@dataclass(frozen=True)
class FrequencyData:
    overall: tuple[NumberFrequency, ...] = ()
    by_position: tuple[PositionFrequencyGroup, ...] = ()
    special_ball: tuple[NumberFrequency, ...] = ()


@dataclass(frozen=True)
class SelectionState:
    numbers: frozenset[int] = frozenset()  # len <= 5
    special_ball: Optional[int] = None
    last_check_result: Optional[CombinationQueryResult] = None
    last_generated: Optional[GeneratedCombination] = None

    @property
    def can_check(self) -> bool:
        return len(self.numbers) == cte.MAIN_NUMBERS and self.special_ball is not None


@dataclass(frozen=True)
class SearchState:
    active: bool = False
    numbers: frozenset[int] = frozenset()  # len <= 5
    special_ball: Optional[int] = None
    results: tuple[DrawResult, ...] = ()

    @property
    def can_search(self) -> bool:
        return len(self.numbers) == cte.MAIN_NUMBERS


@dataclass(frozen=True)
class PagingState:
    results: tuple[DrawResult, ...] = ()  # append-only between reloads
    page: int = 1
    has_more: bool = False


@dataclass(frozen=True)
class SessionState:
    lifecycle: Lifecycle = field(default_factory=Lifecycle)
    frequency_data: FrequencyData = field(default_factory=FrequencyData)
    selection: SelectionState = field(default_factory=SelectionState)
    search: SearchState = field(default_factory=SearchState)
    paging: PagingState = field(default_factory=PagingState)
