"""
Represents a live connection to the network on behalf of one account.

A session is created by ``SessionClient.connect`` and thrown away on
disconnect or when the node reports the wrong network. The contract bindings
stay ``None`` until the network has been verified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class Session:
    service: Any
    account: str
    chain_id: Optional[int] = None
    arsv_token: Any = None
    usdt_token: Any = None
    treasury: Any = None

    @property
    def is_bound(self) -> bool:
        return all(c is not None for c in (self.arsv_token, self.usdt_token, self.treasury))

    def unbind(self) -> None:
        self.arsv_token = None
        self.usdt_token = None
        self.treasury = None
