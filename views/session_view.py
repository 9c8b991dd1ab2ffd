"""
Output surface of the session client.

The client never renders anything itself: it pushes text to a
``SessionView`` (status line, account, balances, alerts and the event log).
``MemoryView`` keeps everything in memory for the Streamlit page and the
tests; ``LoggingView`` writes it to the log for headless runs.
"""

from __future__ import annotations

import threading
from typing import List, Optional, Protocol

from utils.logger import logger_manager

logger = logger_manager.setup_logger(__name__)


class SessionView(Protocol):
    def set_status(self, text: str) -> None: ...

    def set_account(self, account: str) -> None: ...

    def set_balances(self, usdt: str, arsv: str) -> None: ...

    def alert(self, text: str) -> None: ...

    def append_event(self, line: str) -> None: ...


class MemoryView:
    """Thread-safe in-memory view. The event log only grows."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.status: str = ""
        self.status_history: List[str] = []
        self.account: str = ""
        self.usdt_balance: Optional[str] = None
        self.arsv_balance: Optional[str] = None
        self.alerts: List[str] = []
        self.event_log: List[str] = []

    def set_status(self, text: str) -> None:
        with self._lock:
            self.status = text
            self.status_history.append(text)

    def set_account(self, account: str) -> None:
        with self._lock:
            self.account = account

    def set_balances(self, usdt: str, arsv: str) -> None:
        with self._lock:
            self.usdt_balance = usdt
            self.arsv_balance = arsv

    def alert(self, text: str) -> None:
        with self._lock:
            self.alerts.append(text)

    def append_event(self, line: str) -> None:
        with self._lock:
            self.event_log.append(line)

    def pop_alerts(self) -> List[str]:
        with self._lock:
            alerts, self.alerts = self.alerts, []
        return alerts

    def events_snapshot(self) -> List[str]:
        with self._lock:
            return list(self.event_log)


class LoggingView:
    def set_status(self, text: str) -> None:
        logger.info(f"[estado] {text}")

    def set_account(self, account: str) -> None:
        logger.info(f"[cuenta] {account}")

    def set_balances(self, usdt: str, arsv: str) -> None:
        logger.info(f"[balances] USDT={usdt} | ARSV={arsv}")

    def alert(self, text: str) -> None:
        logger.warning(f"[alerta] {text}")

    def append_event(self, line: str) -> None:
        logger.info(f"[evento] {line}")
