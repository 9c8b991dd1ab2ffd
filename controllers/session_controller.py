# controllers/session_controller.py
from __future__ import annotations
import threading
from typing import Any, Callable, List, Optional

from enums.session_state import SessionState, SwapStep
from enums.swap_kind import SwapKind
from models.balances import Balances
from models.session import Session
from models.treasury_event import AnyTreasuryEvent
from models.treasury_overview import TreasuryOverview
from schemas.trade_schema import SwapRequest, SwapResult
from services.event_service import EventSubscription
from services.web3_service import Web3Service, describe_error
from utils.config import Settings
from utils.errors import (
    BalanceReadError,
    ChainCallError,
    InvalidAmountError,
    NetworkMismatchError,
    WalletMissingError,
)
from utils.logger import logger_manager, log_function
from utils.units import parse_amount
from views.session_view import MemoryView, SessionView

logger = logger_manager.setup_logger(__name__)

INVALID_AMOUNT_TEXT = "Ingresa una cantidad válida."
NOT_CONNECTED_TEXT = "Conecta la wallet antes de operar."
SWAP_BUSY_TEXT = "Ya hay una operación en curso."


class SessionClient:
    """
    Cliente de sesión contra la tesorería ARSV:
      - connect(): autoriza la wallet, verifica la red y crea los contratos
      - update_balances(): lee balances USDT/ARSV de la cuenta
      - buy_arsv()/sell_arsv(): approve -> esperar -> buy/sell -> esperar
      - listen_to_events(): añade una línea al log por cada evento

    Ninguna operación lanza hacia el caller: los errores acaban en el estado,
    en una alerta o en el log.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        view: Optional[SessionView] = None,
        service_factory: Callable[[Settings], Any] = Web3Service,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.view: SessionView = view if view is not None else MemoryView()
        self._service_factory = service_factory

        self.state = SessionState.DISCONNECTED
        self.session: Optional[Session] = None
        self.swap_step = SwapStep.IDLE
        self._swap_lock = threading.Lock()
        self._subscriptions: List[EventSubscription] = []

    # -------- helpers --------
    @property
    def is_ready(self) -> bool:
        return self.state is SessionState.READY and self.session is not None and self.session.is_bound

    @property
    def decimals(self) -> int:
        return self.settings.decimals

    def _status(self, text: str) -> None:
        self.view.set_status(text)

    # -------- conexión --------
    @log_function
    def connect(self) -> bool:
        if self.session is not None:
            self.disconnect()

        if not self.settings.has_wallet:
            err = WalletMissingError()
            logger.warning(str(err))
            self._status(str(err))
            return False

        self.state = SessionState.CONNECTING
        self._status("Conectando...")
        try:
            service = self._service_factory(self.settings)
            account = service.account_address
            self.session = Session(service=service, account=account)
            self.view.set_account(account)

            chain_id = service.chain_id()
            self.session.chain_id = chain_id
            if chain_id != self.settings.chain_id:
                raise NetworkMismatchError(self.settings.chain_id, chain_id, self.settings.network_name)

            self.session.arsv_token = service.load_erc20(self.settings.arsv_token_address)
            self.session.usdt_token = service.load_erc20(self.settings.usdt_token_address)
            self.session.treasury = service.load_treasury(self.settings.treasury_address)
        except NetworkMismatchError as e:
            logger.warning(str(e))
            self.state = SessionState.NETWORK_MISMATCH
            if self.session is not None:
                self.session.unbind()
            self._status(f"Conéctate a la red {e.network_name}.")
            return False
        except Exception as e:
            logger.error(f"Error al conectar: {e}")
            self.state = SessionState.DISCONNECTED
            self.session = None
            self._status(f"Error al conectar: {describe_error(e)}")
            return False

        self.state = SessionState.READY
        self._status(f"Conectado a {self.settings.network_name} y contratos inicializados.")
        self.update_balances()
        try:
            self.listen_to_events()
        except Exception as e:
            logger.error(f"No se pudo suscribir a eventos: {e}")
        if self.settings.check_decimals:
            self._check_decimals()
        return True

    def disconnect(self) -> None:
        for sub in self._subscriptions:
            sub.cancel()
        self._subscriptions.clear()
        if self.session is not None:
            self.session.unbind()
        self.session = None
        self.state = SessionState.DISCONNECTED
        self.swap_step = SwapStep.IDLE
        logger.info("Sesión cerrada.")

    def _check_decimals(self) -> None:
        """Avisa si decimals() on-chain no coincide con la escala configurada."""
        for symbol, token in (("USDT", self.session.usdt_token), ("ARSV", self.session.arsv_token)):
            try:
                onchain = self.session.service.token_decimals(token)
            except Exception as e:
                logger.warning(f"No se pudo leer decimals() de {symbol}: {e}")
                continue
            if onchain != self.decimals:
                logger.warning(
                    f"{symbol}.decimals()={onchain} pero se usa escala {self.decimals}; "
                    f"los importes mostrados pueden no coincidir."
                )

    # -------- lecturas --------
    @log_function
    def update_balances(self) -> Optional[Balances]:
        if not self.is_ready:
            logger.warning("update_balances sin sesión lista; se ignora.")
            return None
        service = self.session.service
        try:
            usdt_raw = service.token_balance_raw(self.session.usdt_token, self.session.account)
            arsv_raw = service.token_balance_raw(self.session.arsv_token, self.session.account)
        except Exception as e:
            # la vista conserva los valores anteriores
            err = BalanceReadError(describe_error(e))
            logger.error(f"Error al actualizar balances: {err}")
            return None

        balances = Balances(
            account=self.session.account, usdt_raw=usdt_raw, arsv_raw=arsv_raw, decimals=self.decimals
        )
        self.view.set_balances(balances.usdt, balances.arsv)
        logger.debug(f"Balances {balances.account}: USDT={balances.usdt} ARSV={balances.arsv}")
        return balances

    @log_function
    def treasury_overview(self) -> Optional[TreasuryOverview]:
        if not self.is_ready:
            return None
        service, treasury = self.session.service, self.session.treasury
        try:
            return TreasuryOverview(
                usdt_balance=int(service.call_view(treasury, "getUSDTBalance")),
                arsv_balance=int(service.call_view(treasury, "getARSVBalance")),
                max_buyable_usdt=int(service.call_view(treasury, "getMaxBuyableUSDT")),
                fee_recipient=str(service.call_view(treasury, "feeRecipient")),
                approved_withdrawer=str(service.call_view(treasury, "approvedWithdrawer")),
                buy_price=int(service.call_view(treasury, "buyPrice")),
                sell_price=int(service.call_view(treasury, "sellPrice")),
                buy_fee=int(service.call_view(treasury, "buyFee")),
                sell_fee=int(service.call_view(treasury, "sellFee")),
                decimals=self.decimals,
            )
        except Exception as e:
            logger.error(f"Error leyendo vistas de la tesorería: {e}")
            return None

    # -------- operaciones --------
    def buy_arsv(self, amount_text: str) -> SwapResult:
        return self._swap(SwapKind.BUY, amount_text)

    def sell_arsv(self, amount_text: str) -> SwapResult:
        return self._swap(SwapKind.SELL, amount_text)

    def _swap(self, kind: SwapKind, amount_text: str) -> SwapResult:
        try:
            request = SwapRequest(kind=kind, amount_text=str(amount_text),
                                  amount_raw=parse_amount(amount_text, self.decimals))
        except InvalidAmountError as e:
            logger.info(f"[{kind.value}] entrada rechazada: {e}")
            self.view.alert(INVALID_AMOUNT_TEXT)
            return SwapResult(kind=kind, ok=False, error=str(e))

        if not self.is_ready:
            self._status(NOT_CONNECTED_TEXT)
            return SwapResult(kind=kind, ok=False, amount_raw=request.amount_raw, error=NOT_CONNECTED_TEXT)

        if not self._swap_lock.acquire(blocking=False):
            logger.warning(f"[{kind.value}] rechazada: otra operación en curso ({self.swap_step.value}).")
            self._status(SWAP_BUSY_TEXT)
            return SwapResult(kind=kind, ok=False, amount_raw=request.amount_raw, error=SWAP_BUSY_TEXT)
        try:
            return self._execute_swap(request)
        finally:
            self.swap_step = SwapStep.IDLE
            self._swap_lock.release()

    @log_function
    def _execute_swap(self, request: SwapRequest) -> SwapResult:
        kind = request.kind
        service = self.session.service
        source_token = self.session.usdt_token if kind is SwapKind.BUY else self.session.arsv_token
        result = SwapResult(kind=kind, ok=False, amount_raw=request.amount_raw)
        logger.info(f"[{kind.value}] {request.amount_text} {kind.source_symbol} (raw={request.amount_raw})")

        try:
            # 1) approve de la tesorería sobre el token de origen
            self.swap_step = SwapStep.APPROVING
            self._status(kind.approving_text)
            try:
                tx = service.build_approve(source_token, self.settings.treasury_address, request.amount_raw)
                result.approve_tx = service.transact(tx, label=f"approve_{kind.source_symbol}")
            except ChainCallError:
                raise
            except Exception as e:
                raise ChainCallError(SwapStep.APPROVING.value, describe_error(e)) from e
            self.swap_step = SwapStep.APPROVED

            # 2) buyARSV / sellARSV con el mismo importe
            self.swap_step = SwapStep.SUBMITTING
            self._status(kind.submitting_text)
            try:
                tx = service.build_contract_tx(self.session.treasury, kind.treasury_function, request.amount_raw)
                result.swap_tx = service.transact(tx, label=kind.treasury_function)
            except ChainCallError:
                raise
            except Exception as e:
                raise ChainCallError(SwapStep.SUBMITTING.value, describe_error(e)) from e
            self.swap_step = SwapStep.CONFIRMED
        except ChainCallError as e:
            # sin reintento ni rollback: un approve ya concedido se queda
            logger.error(f"Error en {kind.treasury_function} ({self.swap_step.value}): {e.message}")
            result.step = self.swap_step
            result.error = e.message
            self._status(f"Error: {e.message}")
            return result

        result.ok = True
        result.step = SwapStep.CONFIRMED
        self._status(kind.done_text)
        self.update_balances()
        return result

    # -------- eventos --------
    def _append_event(self, event: AnyTreasuryEvent) -> None:
        self.view.append_event(event.format_line(self.decimals))

    @log_function
    def listen_to_events(self) -> EventSubscription:
        if not self.is_ready:
            raise RuntimeError("listen_to_events requiere una sesión conectada.")
        sub = EventSubscription(
            self.session.service,
            self.session.treasury,
            interval=self.settings.event_poll_interval_secs,
            listeners=[self._append_event],
        )
        sub.start()
        self._subscriptions.append(sub)
        return sub
