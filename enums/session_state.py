"""
States of a client session and of a single buy/sell operation.
"""

from __future__ import annotations

from enum import Enum


class SessionState(str, Enum):
    """Connection lifecycle of a ``SessionClient``."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    NETWORK_MISMATCH = "network_mismatch"
    READY = "ready"


class SwapStep(str, Enum):
    """Progress of an approve-then-swap sequence."""

    IDLE = "idle"
    APPROVING = "approving"
    APPROVED = "approved"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
