# webapi/schemas.py
"""
Wire schemas for the lottery statistics API.

Both games share one JSON schema except for the special-ball field, which is
`mega_ball` on Mega Millions payloads and `powerball` on Powerball payloads.
Decoding tries each name in turn; encoding always writes `special_ball`.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Any, Generic, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

import constants as cte
from lotto_analysis.types import (
    CombinationMatch,
    CombinationQueryResult,
    DrawResult,
    GeneratedCombination,
    NumberFrequency,
)
from other_utils.date_utils import parse_iso_date

DataT = TypeVar("DataT")

_SPECIAL_BALL_LOOKUP = cte.SPECIAL_BALL_FIELDS + (cte.CANONICAL_SPECIAL_BALL_FIELD,)


def resolve_special_ball(data: Any, *, required: bool) -> Any:
    """
    Move the special ball into the canonical key, whichever wire name carried it.
    Names are tried in order; a null value counts as absent.
    """
    if not isinstance(data, dict):
        return data

    value = None
    for name in _SPECIAL_BALL_LOOKUP:
        if data.get(name) is not None:
            value = data[name]
            break

    if value is None and required:
        expected = " or ".join(repr(n) for n in cte.SPECIAL_BALL_FIELDS)
        raise ValueError(f"missing special ball field, expected {expected}")

    cleaned = {k: v for k, v in data.items() if k not in _SPECIAL_BALL_LOOKUP}
    cleaned[cte.CANONICAL_SPECIAL_BALL_FIELD] = value
    return cleaned


def coerce_integral(value: Any) -> Any:
    """Accept 2 and 2.0 as 2; reject 2.5 instead of truncating it."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("expected an integral number, got a boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and abs(value - round(value)) <= cte.MULTIPLIER_EPSILON:
            return int(round(value))
        raise ValueError(f"expected an integral number, got {value!r}")
    raise ValueError(f"expected an integral number, got {type(value).__name__}")


def _check_main_numbers(numbers: list[int]) -> list[int]:
    if len(numbers) != cte.MAIN_NUMBERS:
        raise ValueError(f"expected {cte.MAIN_NUMBERS} main numbers, got {len(numbers)}")
    if len(set(numbers)) != len(numbers):
        raise ValueError(f"main numbers must be distinct, got {numbers}")
    return numbers


def describe_validation_error(exc: ValidationError, limit: int = 3) -> str:
    """Render pydantic errors as `path.to.field: reason` fragments."""
    parts = []
    for err in exc.errors()[:limit]:
        path = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{path}: {err['msg']}")
    extra = exc.error_count() - limit
    if extra > 0:
        parts.append(f"(+{extra} more)")
    return "; ".join(parts)


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# -----------------------------
# Envelopes
# -----------------------------

class Envelope(WireModel, Generic[DataT]):
    """`{success, message, data}` wrapper shared by every endpoint."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None


class ErrorEnvelope(WireModel):
    success: bool = False
    message: str = Field(..., validation_alias=AliasChoices("message", "detail"))


# -----------------------------
# Frequencies
# -----------------------------

class FrequencyWire(WireModel):
    number: int
    count: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0.0, le=100.0)

    def to_domain(self) -> NumberFrequency:
        return NumberFrequency(number=self.number, count=self.count, percentage=self.percentage)


class PositionFrequencyWire(FrequencyWire):
    position: int = Field(..., ge=1)


# -----------------------------
# Draws
# -----------------------------

class DrawWire(WireModel):
    draw_date: date
    main_numbers: list[int]
    special_ball: int
    multiplier: Optional[int] = None
    prize: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _special_ball(cls, data: Any) -> Any:
        return resolve_special_ball(data, required=True)

    @field_validator("draw_date", mode="before")
    @classmethod
    def _date(cls, v: Any) -> date:
        return parse_iso_date(v)

    @field_validator("multiplier", mode="before")
    @classmethod
    def _multiplier(cls, v: Any) -> Any:
        return coerce_integral(v)

    @field_validator("prize", mode="before")
    @classmethod
    def _prize(cls, v: Any) -> Any:
        return v if v is None or isinstance(v, str) else str(v)

    @field_validator("main_numbers")
    @classmethod
    def _main_numbers(cls, v: list[int]) -> list[int]:
        return _check_main_numbers(v)

    def to_domain(self) -> DrawResult:
        return DrawResult(
            draw_date=self.draw_date,
            main_numbers=tuple(self.main_numbers),
            special_ball=self.special_ball,
            multiplier=self.multiplier,
            prize=self.prize,
        )

    @classmethod
    def from_domain(cls, draw: DrawResult) -> "DrawWire":
        return cls(
            draw_date=draw.draw_date,
            main_numbers=list(draw.main_numbers),
            special_ball=draw.special_ball,
            multiplier=draw.multiplier,
            prize=draw.prize,
        )


def draw_to_wire(draw: DrawResult) -> dict[str, Any]:
    """Encode a draw with the canonical `special_ball` field name."""
    return DrawWire.from_domain(draw).model_dump(mode="json")


class LatestPageWire(WireModel):
    combinations: list[DrawWire] = Field(
        default_factory=list,
        validation_alias=AliasChoices("combinations", "latest_numbers"),
    )
    has_more: bool = False


# -----------------------------
# Combination check
# -----------------------------

class MatchWire(WireModel):
    draw_date: date = Field(..., validation_alias=AliasChoices("date", "draw_date"))
    special_ball: Optional[int] = None
    prize: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _special_ball(cls, data: Any) -> Any:
        return resolve_special_ball(data, required=False)

    @field_validator("draw_date", mode="before")
    @classmethod
    def _date(cls, v: Any) -> date:
        return parse_iso_date(v)

    @field_validator("prize", mode="before")
    @classmethod
    def _prize(cls, v: Any) -> Any:
        return v if v is None or isinstance(v, str) else str(v)

    def to_domain(self) -> CombinationMatch:
        return CombinationMatch(draw_date=self.draw_date, special_ball=self.special_ball, prize=self.prize)


class CombinationCheckWire(WireModel):
    exists: bool
    frequency: Optional[int] = Field(default=None, ge=0)
    main_numbers: list[int] = Field(default_factory=list)
    matches: list[MatchWire] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _legacy_dates(cls, data: Any) -> Any:
        # Older servers only sent the list of winning dates.
        if isinstance(data, dict) and data.get("matches") is None and data.get("dates"):
            data = dict(data)
            data["matches"] = [{"date": d} for d in data["dates"]]
        return data

    def to_domain(self) -> CombinationQueryResult:
        return CombinationQueryResult(
            exists=self.exists,
            total_occurrences=self.frequency,
            matches=tuple(m.to_domain() for m in self.matches),
            main_numbers=tuple(self.main_numbers),
        )


# -----------------------------
# Generation
# -----------------------------

class GeneratedWire(WireModel):
    main_numbers: list[int]
    special_ball: int
    position_percentages: Optional[dict[str, float]] = None
    is_unique: bool = False

    @model_validator(mode="before")
    @classmethod
    def _special_ball(cls, data: Any) -> Any:
        return resolve_special_ball(data, required=True)

    @field_validator("main_numbers")
    @classmethod
    def _main_numbers(cls, v: list[int]) -> list[int]:
        return _check_main_numbers(v)

    def to_domain(self) -> GeneratedCombination:
        return GeneratedCombination(
            main_numbers=tuple(self.main_numbers),
            special_ball=self.special_ball,
            position_percentages=dict(self.position_percentages) if self.position_percentages is not None else None,
            is_unique=self.is_unique,
        )


class GenerationEnvelope(Envelope[GeneratedWire]):
    @model_validator(mode="before")
    @classmethod
    def _bare_body(cls, data: Any) -> Any:
        # The generators may answer with the combination itself, without envelope.
        if isinstance(data, dict) and "data" not in data and "main_numbers" in data:
            return {"success": True, "data": data}
        return data
