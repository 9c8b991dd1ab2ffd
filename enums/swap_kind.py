from __future__ import annotations

from enum import Enum


class SwapKind(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @property
    def treasury_function(self) -> str:
        return "buyARSV" if self is SwapKind.BUY else "sellARSV"

    @property
    def source_symbol(self) -> str:
        # token que el usuario entrega (y que hay que aprobar)
        return "USDT" if self is SwapKind.BUY else "ARSV"

    @property
    def approving_text(self) -> str:
        return f"Aprobando {self.source_symbol}..."

    @property
    def submitting_text(self) -> str:
        return "Comprando ARSV..." if self is SwapKind.BUY else "Vendiendo ARSV..."

    @property
    def done_text(self) -> str:
        return "Compra completada." if self is SwapKind.BUY else "Venta completada."
