"""
Error kinds raised by the ARSV Treasury client.

Every failure the client can surface belongs to one of the classes below.
Controllers catch them at the operation boundary and turn them into a status
line, an alert or a log entry.
"""

from __future__ import annotations

from typing import Optional


class ArsvClientError(Exception):
    """Base class for all client errors."""


class WalletMissingError(ArsvClientError):
    """No signing key is configured, so there is no wallet to authorize."""

    def __init__(self, message: str = "Wallet no está instalada (falta PRIVATE_KEY).") -> None:
        super().__init__(message)


class NetworkMismatchError(ArsvClientError):
    def __init__(self, expected: int, actual: int, network_name: str = "Sepolia") -> None:
        self.expected = expected
        self.actual = actual
        self.network_name = network_name
        super().__init__(
            f"Red incorrecta: chain_id={actual}, se esperaba {expected} ({network_name})."
        )


class InvalidAmountError(ArsvClientError):
    def __init__(self, text: object, reason: str = "cantidad no válida") -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"{reason}: {text!r}")


class ChainCallError(ArsvClientError):
    """An on-chain call or transaction failed (revert, rejection, timeout...)."""

    def __init__(self, step: str, message: str, tx_hash: Optional[str] = None) -> None:
        self.step = step
        self.message = message
        self.tx_hash = tx_hash
        super().__init__(message)


class BalanceReadError(ArsvClientError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
