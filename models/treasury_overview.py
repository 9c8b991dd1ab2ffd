from __future__ import annotations

from pydantic import BaseModel

from utils.units import format_units


class TreasuryOverview(BaseModel):
    """Snapshot of the read-only views exposed by the treasury contract."""

    usdt_balance: int
    arsv_balance: int
    max_buyable_usdt: int
    fee_recipient: str
    approved_withdrawer: str
    buy_price: int
    sell_price: int
    buy_fee: int
    sell_fee: int
    decimals: int = 4

    def as_rows(self) -> list[dict]:
        d = self.decimals
        return [
            {"campo": "USDT en tesorería", "valor": format_units(self.usdt_balance, d)},
            {"campo": "ARSV en tesorería", "valor": format_units(self.arsv_balance, d)},
            {"campo": "Máx. USDT comprable", "valor": format_units(self.max_buyable_usdt, d)},
            {"campo": "buyPrice", "valor": str(self.buy_price)},
            {"campo": "sellPrice", "valor": str(self.sell_price)},
            {"campo": "buyFee", "valor": str(self.buy_fee)},
            {"campo": "sellFee", "valor": str(self.sell_fee)},
            {"campo": "feeRecipient", "valor": self.fee_recipient},
            {"campo": "approvedWithdrawer", "valor": self.approved_withdrawer},
        ]
