"""
Typed records for the events emitted by the ARSV Treasury contract.

``TokensPurchased(buyer, usdtAmount, arsvAmount)`` and
``TokensSold(seller, arsvAmount, usdtAmount)`` are decoded from raw logs into
the models below. Each one knows how to render itself as a log line.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel

from utils.units import format_units


def _hex(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        h = bytes(value).hex()
        return h if h.startswith("0x") else "0x" + h
    return str(value)


class TreasuryEvent(BaseModel):
    event_name: str = ""
    usdt_amount: int
    arsv_amount: int
    block_number: int = 0
    log_index: int = 0
    tx_hash: Optional[str] = None

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)


class TokensPurchased(TreasuryEvent):
    event_name: str = "TokensPurchased"
    buyer: str

    @property
    def party(self) -> str:
        return self.buyer

    def format_line(self, decimals: int = 4) -> str:
        arsv = format_units(self.arsv_amount, decimals)
        usdt = format_units(self.usdt_amount, decimals)
        return f"Compra: {self.buyer} compró {arsv} ARSV con {usdt} USDT"


class TokensSold(TreasuryEvent):
    event_name: str = "TokensSold"
    seller: str

    @property
    def party(self) -> str:
        return self.seller

    def format_line(self, decimals: int = 4) -> str:
        arsv = format_units(self.arsv_amount, decimals)
        usdt = format_units(self.usdt_amount, decimals)
        return f"Venta: {self.seller} vendió {arsv} ARSV por {usdt} USDT"


AnyTreasuryEvent = Union[TokensPurchased, TokensSold]


def event_from_log(log: Any) -> AnyTreasuryEvent:
    """Build a typed record from a decoded web3 event log."""
    args = log["args"]
    common = {
        "usdt_amount": int(args["usdtAmount"]),
        "arsv_amount": int(args["arsvAmount"]),
        "block_number": int(log.get("blockNumber") or 0),
        "log_index": int(log.get("logIndex") or 0),
        "tx_hash": _hex(log.get("transactionHash")),
    }
    name = log["event"]
    if name == "TokensPurchased":
        return TokensPurchased(buyer=str(args["buyer"]), **common)
    if name == "TokensSold":
        return TokensSold(seller=str(args["seller"]), **common)
    raise ValueError(f"Evento desconocido: {name}")
