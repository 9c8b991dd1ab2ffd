from __future__ import annotations

from pydantic import BaseModel

from utils.units import format_units


class Balances(BaseModel):
    account: str
    usdt_raw: int
    arsv_raw: int
    decimals: int = 4

    @property
    def usdt(self) -> str:
        return format_units(self.usdt_raw, self.decimals)

    @property
    def arsv(self) -> str:
        return format_units(self.arsv_raw, self.decimals)
