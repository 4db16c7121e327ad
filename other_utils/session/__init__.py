"""
Public API for the `other_utils.session` package.

The controller owns one game's session; the display layer reads snapshots
(`SessionState`) and calls intents, never touching controller fields.
"""

from __future__ import annotations

from .controller import LotteryController
from .format import format_session
from .types import (
    FrequencyData,
    Lifecycle,
    PagingState,
    Phase,
    SearchState,
    SelectionState,
    SessionState,
)

__all__ = [
    "LotteryController",
    "format_session",
    "SessionState",
    "Lifecycle",
    "Phase",
    "FrequencyData",
    "SelectionState",
    "SearchState",
    "PagingState",
]
