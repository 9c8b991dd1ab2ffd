from __future__ import annotations
from typing import Any, List, Optional, Callable
from time import sleep

from web3 import Web3
from web3.types import TxReceipt, HexBytes
from eth_account import Account
from web3.exceptions import ContractLogicError

from utils.config import Settings
from utils.errors import ChainCallError, WalletMissingError
from utils.logger import logger_manager, log_function
from utils.load_abi import load_erc20_abi, load_treasury_abi

logger = logger_manager.setup_logger(__name__)


def _hex_str(value: str | bytes) -> str:
    return value if isinstance(value, str) else Web3.to_hex(value)


def describe_error(exc: BaseException) -> str:
    """Texto legible de una excepción de web3 (revert, rechazo, timeout...)."""
    if isinstance(exc, ContractLogicError) and getattr(exc, "message", None):
        return str(exc.message)
    if isinstance(exc, ChainCallError):
        return exc.message
    args = getattr(exc, "args", ())
    if args and isinstance(args[0], dict) and "message" in args[0]:
        # errores JSON-RPC del nodo: {'code': -32000, 'message': '...'}
        return str(args[0]["message"])
    return str(exc) or exc.__class__.__name__


class Web3Service:
    """
    Frontera con la red: conexión con failover de RPC, cuenta firmante,
    lecturas con reintentos y construcción/envío de transacciones.

    Los envíos NO se reintentan: una tx fallida aborta la secuencia del caller.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings.from_env()
        if not self.settings.has_wallet:
            raise WalletMissingError()

        # Lista de RPCs con failover
        self._rpc_urls: List[str] = list(self.settings.rpc_urls)
        self._current_rpc_idx = -1
        self._connect_first_ok()

        # "autorización" de la wallet: una clave inválida equivale a un rechazo
        try:
            self._account = Account.from_key(self.settings.private_key.strip())
        except (ValueError, TypeError) as e:
            raise ChainCallError("authorize", f"Clave privada no válida: {e}") from None

        self._erc20_abi = load_erc20_abi()
        self._treasury_abi = load_treasury_abi()
        logger.debug(f"Conectado a {self._active_rpc}; cuenta={self._account.address}")

    # ---------- conexión / failover ----------
    def _connect(self, url: str) -> Web3:
        w3 = Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": self.settings.request_timeout_secs}))
        if not w3.is_connected():
            raise ConnectionError(f"No conectado al nodo: {url}")
        return w3

    def _connect_first_ok(self) -> None:
        last_err: Optional[Exception] = None
        for idx, url in enumerate(self._rpc_urls):
            try:
                self._w3 = self._connect(url)
                self._current_rpc_idx = idx
                self._active_rpc = url
                return
            except Exception as e:
                last_err = e
                logger.warning(f"RPC fallida {url}: {e}")
        raise last_err or ConnectionError("No disponible ningún RPC.")

    def _rotate_and_reconnect(self) -> None:
        if len(self._rpc_urls) < 2:
            return
        self._current_rpc_idx = (self._current_rpc_idx + 1) % len(self._rpc_urls)
        url = self._rpc_urls[self._current_rpc_idx]
        logger.info(f"Cambiando a RPC: {url}")
        self._w3 = self._connect(url)
        self._active_rpc = url

    def _rpc_call(self, label: str, fn: Callable[[], Any], retries: Optional[int] = None) -> Any:
        """
        Ejecuta una llamada RPC de solo lectura con reintentos y failover de proveedor.
        Un revert del contrato no se reintenta.
        """
        retries = self.settings.rpc_retries if retries is None else retries
        last_exc: Optional[Exception] = None
        for attempt in range(1, max(1, retries) + 1):
            try:
                return fn()
            except ContractLogicError:
                raise
            except Exception as e:
                last_exc = e
                logger.warning(f"[RPC:{label}] intento {attempt}/{retries} falló: {e}")
                if attempt >= retries:
                    break
                try:
                    self._rotate_and_reconnect()
                except Exception as e2:
                    logger.warning(f"[RPC:{label}] fallo al rotar RPC: {e2}")
                sleep(self.settings.retry_backoff_secs * attempt)
        # tras agotar intentos, propaga
        raise last_exc if last_exc else RuntimeError(f"RPC '{label}' falló sin excepción.")

    # ---------- util ----------
    @property
    def w3(self) -> Web3:
        return self._w3

    @property
    def account_address(self) -> str:
        return self._account.address

    @property
    def active_rpc(self) -> str:
        return self._active_rpc

    def checksum(self, address: str) -> str:
        return Web3.to_checksum_address(address)

    def load_erc20(self, address: str):
        return self._w3.eth.contract(address=self.checksum(address), abi=self._erc20_abi)

    def load_treasury(self, address: str):
        return self._w3.eth.contract(address=self.checksum(address), abi=self._treasury_abi)

    # ---------- lecturas ----------
    def chain_id(self) -> int:
        return int(self._rpc_call("chain_id", lambda: self._w3.eth.chain_id))

    def block_number(self) -> int:
        return int(self._rpc_call("block_number", lambda: self._w3.eth.block_number))

    def token_balance_raw(self, erc20_contract, owner: str) -> int:
        owner_cs = self.checksum(owner)
        return int(self._rpc_call("balanceOf", lambda: erc20_contract.functions.balanceOf(owner_cs).call()))

    @log_function
    def token_decimals(self, erc20_contract) -> int:
        return int(self._rpc_call("decimals", lambda: erc20_contract.functions.decimals().call()))

    def call_view(self, contract, fn_name: str, *args: Any) -> Any:
        return self._rpc_call(fn_name, lambda: getattr(contract.functions, fn_name)(*args).call())

    def get_event_logs(self, contract, event_name: str, from_block: int, to_block: int) -> list:
        event = getattr(contract.events, event_name)()
        return list(self._rpc_call(
            f"get_logs:{event_name}",
            lambda: event.get_logs(from_block=from_block, to_block=to_block),
        ))

    # ---------- gas ----------
    def _apply_gas_fields(self, tx: dict) -> dict:
        """
        Aplica EIP-1559 si el nodo expone baseFeePerGas; si no, gasPrice legacy.
        Nunca deja ambos tipos de campo a la vez.
        """
        tx.pop("gasPrice", None)
        tx.pop("maxFeePerGas", None)
        tx.pop("maxPriorityFeePerGas", None)

        latest = self._rpc_call("get_block_latest", lambda: self._w3.eth.get_block("latest"))
        base_fee = latest.get("baseFeePerGas")
        if base_fee is not None:
            try:
                priority = int(self._rpc_call("max_priority_fee", lambda: self._w3.eth.max_priority_fee))
            except Exception:
                priority = int(Web3.to_wei(self.settings.priority_fee_gwei, "gwei"))
            tx["type"] = 2
            tx["maxPriorityFeePerGas"] = priority
            tx["maxFeePerGas"] = int(int(base_fee) * self.settings.max_fee_multiplier + priority)
        else:
            tx["type"] = 0
            tx["gasPrice"] = int(self._rpc_call("gas_price", lambda: self._w3.eth.gas_price))
        return tx

    def _base_tx(self) -> dict:
        addr = self._account.address
        return {
            "from": addr,
            "nonce": self._rpc_call("get_transaction_count", lambda: self._w3.eth.get_transaction_count(addr, "pending")),
            "chainId": self.chain_id(),
        }

    def _finish_tx(self, tx: dict, label: str) -> dict:
        tx = self._apply_gas_fields(tx)
        estimated_gas = int(self._w3.eth.estimate_gas(tx))
        tx["gas"] = int(estimated_gas * self.settings.gas_limit_multiplier)
        logger.debug(f"[{label}] gas={tx['gas']} nonce={tx['nonce']}")
        return tx

    # ---------- builders ----------
    def build_approve(self, erc20_contract, spender: str, amount_raw: int) -> dict:
        tx = erc20_contract.functions.approve(self.checksum(spender), int(amount_raw)).build_transaction(self._base_tx())
        return self._finish_tx(tx, "approve")

    def build_contract_tx(self, contract, fn_name: str, *args: Any) -> dict:
        fn = getattr(contract.functions, fn_name)
        tx = fn(*args).build_transaction(self._base_tx())
        return self._finish_tx(tx, fn_name)

    # ---------- envío ----------
    @log_function
    def sign_and_send(self, tx: dict) -> str:
        signed = self._account.sign_transaction(tx)
        tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        return _hex_str(tx_hash)

    @log_function
    def wait_for_receipt(self, tx_hash: str | HexBytes, label: str = "tx") -> TxReceipt:
        receipt = self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.settings.receipt_timeout_secs)
        if int(receipt.get("status", 0)) != 1:
            h = _hex_str(tx_hash)
            raise ChainCallError(label, f"Transacción revertida: {h}", tx_hash=h)
        return receipt

    def transact(self, tx: dict, label: str) -> str:
        """Firma, envía y espera la inclusión de ``tx``. Devuelve el hash."""
        tx_hash = self.sign_and_send(tx)
        logger.info(f"[{label}] enviada {tx_hash}, esperando confirmación...")
        self.wait_for_receipt(tx_hash, label=label)
        logger.info(f"[{label}] confirmada {tx_hash}")
        return tx_hash
