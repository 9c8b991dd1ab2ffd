"""
Data schema definitions for swaps.

Dataclasses describing a buy/sell request once its amount has been
validated, and the outcome reported back to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from enums.session_state import SwapStep
from enums.swap_kind import SwapKind


@dataclass
class SwapRequest:
    """A validated buy or sell order."""

    kind: SwapKind
    amount_text: str
    amount_raw: int


@dataclass
class SwapResult:
    """Outcome of a buy/sell sequence.

    ``step`` is the last step reached: ``CONFIRMED`` on success, otherwise
    the step that was in progress when the sequence aborted (``IDLE`` when
    it never reached the chain).
    """

    kind: SwapKind
    ok: bool
    step: SwapStep = SwapStep.IDLE
    amount_raw: int = 0
    approve_tx: Optional[str] = None
    swap_tx: Optional[str] = None
    error: Optional[str] = None
