import pytest

from conftest import ACCOUNT, FakeService, chain_error, make_log
from controllers.session_controller import (
    INVALID_AMOUNT_TEXT,
    NOT_CONNECTED_TEXT,
    SessionClient,
)
from enums.session_state import SessionState, SwapStep
from enums.swap_kind import SwapKind
from utils.config import Settings


class TestConnect:
    def test_connect_binds_contracts_and_refreshes(self, connected, view, fake_service):
        assert connected.state is SessionState.READY
        session = connected.session
        assert session.is_bound
        assert session.account == ACCOUNT
        assert view.account == ACCOUNT
        assert view.status == "Conectado a Sepolia y contratos inicializados."
        assert view.usdt_balance == "123.45"
        assert view.arsv_balance == "50.0"
        assert len(connected._subscriptions) == 1

    def test_missing_wallet_stops_before_anything_else(self, view):
        created = []

        def factory(s):
            created.append(s)
            raise AssertionError("no debería construirse el servicio")

        c = SessionClient(settings=Settings(private_key=""), view=view, service_factory=factory)
        assert c.connect() is False
        assert created == []
        assert "no está instalada" in view.status
        assert view.status_history == [view.status]
        assert c.session is None
        assert c.state is SessionState.DISCONNECTED

    def test_wrong_network_leaves_no_bindings(self, settings, view):
        fake = FakeService(settings, chain_id=1)
        c = SessionClient(settings=settings, view=view, service_factory=lambda s: fake)
        assert c.connect() is False
        assert c.state is SessionState.NETWORK_MISMATCH
        assert view.status == "Conéctate a la red Sepolia."
        assert c.session.treasury is None
        assert c.session.arsv_token is None
        assert c.session.usdt_token is None
        assert not any(call[0].startswith("load_") for call in fake.calls)
        assert view.usdt_balance is None
        assert c._subscriptions == []

    def test_provider_failure_is_reported(self, settings, view):
        def factory(s):
            raise ConnectionError("No conectado al nodo: http://x")

        c = SessionClient(settings=settings, view=view, service_factory=factory)
        assert c.connect() is False
        assert view.status == "Error al conectar: No conectado al nodo: http://x"
        assert c.state is SessionState.DISCONNECTED

    def test_reconnect_cancels_previous_subscription(self, connected):
        first = connected._subscriptions[0]
        assert connected.connect() is True
        assert first.cancelled
        assert len(connected._subscriptions) == 1

    def test_decimals_mismatch_only_warns(self, settings, view, caplog):
        fake = FakeService(settings)
        fake.decimals["USDT"] = 6
        c = SessionClient(settings=settings, view=view, service_factory=lambda s: fake)
        try:
            assert c.connect() is True
            assert view.usdt_balance == "123.45"
            assert any("USDT.decimals()=6" in r.getMessage() for r in caplog.records)
        finally:
            c.disconnect()


class TestBalances:
    def test_read_failure_keeps_previous_values(self, connected, view, fake_service):
        fake_service.balances["USDT"] = 99990000
        fake_service.fail_on["balanceOf"] = chain_error("execution reverted")
        assert connected.update_balances() is None
        assert view.usdt_balance == "123.45"
        assert view.arsv_balance == "50.0"

    def test_refresh_returns_balances(self, connected, view, fake_service):
        fake_service.balances["ARSV"] = 10001
        balances = connected.update_balances()
        assert balances.arsv == "1.0001"
        assert view.arsv_balance == "1.0001"

    def test_not_connected_is_a_noop(self, client):
        assert client.update_balances() is None


class TestSwaps:
    @pytest.mark.parametrize("text", ["", "   ", "abc", "0", "-1", "0.0000", "NaN", "inf", None, "1.23456", "1_000", "\u0661\u0660", "\uff11\uff12"])
    @pytest.mark.parametrize("op", ["buy_arsv", "sell_arsv"])
    def test_invalid_amount_alerts_once_without_chain_calls(self, connected, view, fake_service, op, text):
        before = list(fake_service.calls)
        result = getattr(connected, op)(text)
        assert result.ok is False
        assert result.step is SwapStep.IDLE
        assert view.alerts == [INVALID_AMOUNT_TEXT]
        assert fake_service.calls == before

    def test_buy_approves_usdt_then_buys(self, connected, view, fake_service):
        result = connected.buy_arsv("12.5")
        assert result.ok is True
        assert result.step is SwapStep.CONFIRMED
        assert result.amount_raw == 125000
        assert fake_service.chain_calls() == [
            ("build_approve", "USDT", connected.settings.treasury_address, 125000),
            ("transact", "approve_USDT"),
            ("build_tx", "buyARSV", 125000),
            ("transact", "buyARSV"),
        ]
        assert view.status_history[-3:] == ["Aprobando USDT...", "Comprando ARSV...", "Compra completada."]
        assert result.approve_tx and result.swap_tx
        assert connected.swap_step is SwapStep.IDLE

    def test_sell_approves_arsv_then_sells(self, connected, view, fake_service):
        result = connected.sell_arsv("3")
        assert result.ok is True
        assert fake_service.chain_calls() == [
            ("build_approve", "ARSV", connected.settings.treasury_address, 30000),
            ("transact", "approve_ARSV"),
            ("build_tx", "sellARSV", 30000),
            ("transact", "sellARSV"),
        ]
        assert view.status_history[-3:] == ["Aprobando ARSV...", "Vendiendo ARSV...", "Venta completada."]

    def test_success_refreshes_balances(self, connected, view, fake_service):
        fake_service.balances["ARSV"] = 750000
        connected.buy_arsv("1")
        assert view.arsv_balance == "75.0"

    def test_failed_approval_never_submits_swap(self, connected, view, fake_service):
        fake_service.fail_on["transact:approve_USDT"] = chain_error("user rejected transaction")
        result = connected.buy_arsv("1")
        assert result.ok is False
        assert result.step is SwapStep.APPROVING
        assert result.error == "user rejected transaction"
        assert not any(c[0] == "build_tx" for c in fake_service.calls)
        assert view.status == "Error: user rejected transaction"
        assert view.alerts == []

    def test_failed_swap_keeps_approval_and_does_not_retry(self, connected, view, fake_service):
        fake_service.fail_on["transact:sellARSV"] = chain_error("execution reverted: insufficient USDT")
        fake_service.balances["ARSV"] = 1
        result = connected.sell_arsv("2")
        assert result.ok is False
        assert result.step is SwapStep.SUBMITTING
        assert result.approve_tx is not None
        assert result.swap_tx is None
        assert [c for c in fake_service.calls if c[0] == "transact"] == [
            ("transact", "approve_ARSV"),
            ("transact", "sellARSV"),
        ]
        assert view.status == "Error: execution reverted: insufficient USDT"
        # sin refresco tras el fallo
        assert view.arsv_balance == "50.0"

    def test_unexpected_build_error_is_wrapped(self, connected, view, fake_service):
        fake_service.fail_on["buyARSV"] = ValueError("gas estimation failed")
        result = connected.buy_arsv("1")
        assert result.ok is False
        assert result.step is SwapStep.SUBMITTING
        assert view.status == "Error: gas estimation failed"

    def test_swap_requires_connection(self, client, view, fake_service):
        result = client.buy_arsv("1")
        assert result.ok is False
        assert view.status == NOT_CONNECTED_TEXT
        assert fake_service.calls == []

    def test_concurrent_swap_is_rejected(self, connected, view, fake_service):
        connected._swap_lock.acquire()
        try:
            result = connected.sell_arsv("1")
        finally:
            connected._swap_lock.release()
        assert result.ok is False
        assert fake_service.chain_calls() == []
        assert connected.buy_arsv("1").ok is True


class TestEventsAndViews:
    def test_events_are_appended_to_the_log(self, connected, view, fake_service):
        fake_service.logs["TokensPurchased"].append(
            make_log("TokensPurchased", 101, buyer="0xA", usdtAmount=500000, arsvAmount=250000)
        )
        fake_service.logs["TokensSold"].append(
            make_log("TokensSold", 102, seller="0xB", arsvAmount=10000, usdtAmount=20000)
        )
        fake_service.block = 102
        sub = connected._subscriptions[0]
        sub.cancel()
        sub.join(1)
        sub.poll_once()
        assert view.event_log == [
            "Compra: 0xA compró 25.0 ARSV con 50.0 USDT",
            "Venta: 0xB vendió 1.0 ARSV por 2.0 USDT",
        ]

    def test_listen_requires_connection(self, client):
        with pytest.raises(RuntimeError):
            client.listen_to_events()

    def test_treasury_overview(self, connected):
        overview = connected.treasury_overview()
        assert overview.max_buyable_usdt == 5_000_0000
        rows = {r["campo"]: r["valor"] for r in overview.as_rows()}
        assert rows["Máx. USDT comprable"] == "5000.0"
        assert rows["sellFee"] == "15"

    def test_treasury_overview_failure_returns_none(self, connected, fake_service):
        fake_service.fail_on["buyPrice"] = chain_error("boom")
        assert connected.treasury_overview() is None


def test_swap_kind_texts():
    assert SwapKind.BUY.treasury_function == "buyARSV"
    assert SwapKind.SELL.source_symbol == "ARSV"


def test_event_subscription_of_the_client_does_not_buffer(connected, view, fake_service):
    for i in range(50):
        fake_service.logs["TokensSold"].append(
            make_log("TokensSold", 101, i, seller="0xS", arsvAmount=10000, usdtAmount=10000)
        )
    fake_service.block = 101
    sub = connected._subscriptions[0]
    sub.cancel()
    sub.join(1)
    sub.poll_once()
    assert len(view.event_log) == 50
    assert sub._queue.qsize() == 0
