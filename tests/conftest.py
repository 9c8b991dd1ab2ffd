"""
Shared fixtures: a fake chain service standing in for ``Web3Service`` so the
session client can be exercised without a node.
"""

from __future__ import annotations

import pytest

from controllers.session_controller import SessionClient
from utils.config import SEPOLIA_CHAIN_ID, Settings
from utils.errors import ChainCallError
from views.session_view import MemoryView

ACCOUNT = "0x" + "ab" * 20
TEST_KEY = "0x" + "11" * 32


class FakeContract:
    def __init__(self, kind: str, address: str, symbol: str = "") -> None:
        self.kind = kind
        self.address = address
        self.symbol = symbol

    def __repr__(self) -> str:
        return f"FakeContract({self.symbol or self.kind})"


class FakeService:
    """Records every call in order; failures are injected per step label."""

    def __init__(self, settings: Settings, chain_id: int = SEPOLIA_CHAIN_ID) -> None:
        self.settings = settings
        self.account_address = ACCOUNT
        self._chain_id = chain_id
        self.calls: list[tuple] = []
        self.balances = {"USDT": 1234500, "ARSV": 500000}
        self.decimals = {"USDT": 4, "ARSV": 4}
        self.fail_on: dict[str, Exception] = {}
        self.logs: dict[str, list] = {"TokensPurchased": [], "TokensSold": []}
        self.block = 100
        self.views = {
            "getUSDTBalance": 10_000_0000,
            "getARSVBalance": 20_000_0000,
            "getMaxBuyableUSDT": 5_000_0000,
            "feeRecipient": "0x" + "cd" * 20,
            "approvedWithdrawer": "0x" + "ef" * 20,
            "buyPrice": 1000,
            "sellPrice": 990,
            "buyFee": 10,
            "sellFee": 15,
        }

    def _maybe_fail(self, label: str) -> None:
        if label in self.fail_on:
            raise self.fail_on[label]

    def chain_id(self) -> int:
        self.calls.append(("chain_id",))
        return self._chain_id

    def block_number(self) -> int:
        return self.block

    def load_erc20(self, address: str) -> FakeContract:
        self.calls.append(("load_erc20", address))
        symbol = "ARSV" if address == self.settings.arsv_token_address else "USDT"
        return FakeContract("erc20", address, symbol)

    def load_treasury(self, address: str) -> FakeContract:
        self.calls.append(("load_treasury", address))
        return FakeContract("treasury", address, "TREASURY")

    def token_balance_raw(self, token: FakeContract, owner: str) -> int:
        self.calls.append(("balanceOf", token.symbol, owner))
        self._maybe_fail("balanceOf")
        return self.balances[token.symbol]

    def token_decimals(self, token: FakeContract) -> int:
        self.calls.append(("decimals", token.symbol))
        return self.decimals[token.symbol]

    def call_view(self, contract: FakeContract, fn_name: str):
        self.calls.append(("view", fn_name))
        self._maybe_fail(fn_name)
        return self.views[fn_name]

    def get_event_logs(self, contract, event_name: str, from_block: int, to_block: int) -> list:
        return [
            log for log in self.logs[event_name]
            if from_block <= log["blockNumber"] <= to_block
        ]

    def build_approve(self, token: FakeContract, spender: str, amount_raw: int) -> dict:
        self.calls.append(("build_approve", token.symbol, spender, amount_raw))
        self._maybe_fail("build_approve")
        return {"label": "approve", "token": token.symbol, "amount": amount_raw}

    def build_contract_tx(self, contract: FakeContract, fn_name: str, *args) -> dict:
        self.calls.append(("build_tx", fn_name) + args)
        self._maybe_fail(fn_name)
        return {"label": fn_name, "args": args}

    def transact(self, tx: dict, label: str) -> str:
        # send + wait for inclusion
        self.calls.append(("transact", label))
        self._maybe_fail(f"transact:{label}")
        return "0x" + f"{len(self.calls):064x}"

    def chain_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("build_approve", "build_tx", "transact")]


def make_log(event: str, block: int, index: int = 0, **args) -> dict:
    return {
        "event": event,
        "args": args,
        "blockNumber": block,
        "logIndex": index,
        "transactionHash": bytes.fromhex("aa" * 32),
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(private_key=TEST_KEY, event_poll_interval_secs=0.05, rpc_retries=2, retry_backoff_secs=0.0)


@pytest.fixture
def fake_service(settings: Settings) -> FakeService:
    return FakeService(settings)


@pytest.fixture
def view() -> MemoryView:
    return MemoryView()


@pytest.fixture
def client(settings, view, fake_service):
    c = SessionClient(settings=settings, view=view, service_factory=lambda s: fake_service)
    yield c
    c.disconnect()


@pytest.fixture
def connected(client):
    assert client.connect() is True
    return client


def chain_error(message: str) -> ChainCallError:
    return ChainCallError("test", message)
