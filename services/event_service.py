# services/event_service.py
from __future__ import annotations
import queue, threading
from typing import Any, Callable, Iterator, List, Optional

from models.treasury_event import AnyTreasuryEvent, event_from_log
from utils.logger import logger_manager, log_function

logger = logger_manager.setup_logger(__name__)

TREASURY_EVENTS = ("TokensPurchased", "TokensSold")

EventListener = Callable[[AnyTreasuryEvent], None]


class EventSubscription:
    """
    Suscripción a los eventos de la tesorería (TokensPurchased / TokensSold).

    - Sondea ``get_logs`` en un hilo propio cada ``interval`` segundos.
    - Empieza en el bloque actual al suscribirse: no hay backfill ni replay.
    - Cada evento se entrega como registro tipado a los listeners y, con
      ``buffer=True``, a una cola interna que se consume iterando la suscripción.
    - ``cancel()`` detiene el hilo; la iteración termina al vaciarse la cola.
    """

    def __init__(
        self,
        service: Any,
        treasury: Any,
        interval: float = 4.0,
        start_block: Optional[int] = None,
        listeners: Optional[List[EventListener]] = None,
        buffer: bool = False,
    ) -> None:
        self.service = service
        self.treasury = treasury
        self.interval = interval
        self._listeners: List[EventListener] = list(listeners or [])
        self.buffer = buffer
        self._queue: "queue.Queue[AnyTreasuryEvent]" = queue.Queue()
        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._next_block = start_block

    # --------- ciclo de vida ----------
    def start(self) -> "EventSubscription":
        if self._thread and self._thread.is_alive():
            return self
        if self._next_block is None:
            self._next_block = self.service.block_number()
        self._stop_evt.clear()
        self._thread = threading.Thread(target=self._run_loop, name="TreasuryEvents", daemon=True)
        self._thread.start()
        logger.info(f"Escuchando eventos de la tesorería desde el bloque {self._next_block}.")
        return self

    def cancel(self) -> None:
        self._stop_evt.set()
        logger.info("Suscripción a eventos cancelada.")

    stop = cancel

    @property
    def cancelled(self) -> bool:
        return self._stop_evt.is_set()

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread:
            self._thread.join(timeout)

    def __enter__(self) -> "EventSubscription":
        return self.start()

    def __exit__(self, *exc: Any) -> None:
        self.cancel()

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    # --------- consumo ----------
    def get(self, timeout: Optional[float] = None) -> Optional[AnyTreasuryEvent]:
        """Siguiente evento, o ``None`` si no llega ninguno en ``timeout``."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def __iter__(self) -> Iterator[AnyTreasuryEvent]:
        while True:
            try:
                yield self._queue.get(timeout=0.5)
            except queue.Empty:
                if self.cancelled:
                    return

    # --------- sondeo ----------
    def _run_loop(self) -> None:
        while not self._stop_evt.is_set():
            try:
                self.poll_once()
            except Exception as e:
                # el rango no avanza: se reintenta en el siguiente tick
                logger.error(f"Error leyendo eventos: {e}")
            self._stop_evt.wait(self.interval)

    @log_function
    def poll_once(self) -> List[AnyTreasuryEvent]:
        """Lee los eventos nuevos hasta el último bloque y los despacha."""
        with self._lock:
            if self._next_block is None:
                self._next_block = self.service.block_number()
            latest = self.service.block_number()
            if latest < self._next_block:
                return []

            events: List[AnyTreasuryEvent] = []
            for name in TREASURY_EVENTS:
                for log in self.service.get_event_logs(self.treasury, name, self._next_block, latest):
                    events.append(event_from_log(log))
            events.sort(key=lambda ev: ev.sort_key)
            self._next_block = latest + 1

        for ev in events:
            self._dispatch(ev)
        return events

    def _dispatch(self, event: AnyTreasuryEvent) -> None:
        if self.buffer:
            self._queue.put(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.exception(f"Listener de eventos falló con {event.event_name}: {e}")
