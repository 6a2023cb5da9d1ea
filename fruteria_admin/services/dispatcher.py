# ==============================================================================
# DESPACHADOR DE LLAMADAS REMOTAS (fire-and-forget)
# ==============================================================================
# Las mutaciones del AppStore no esperan al backend: encolan la llamada y
# retornan. Un hilo en segundo plano las ejecuta en orden de llegada.
# - Los errores se registran en el log, nunca se propagan
# - No se revierte el estado local si la llamada falla
# - flush() espera a que la cola se vacíe (tests / cierre de la app)
# ==============================================================================

import logging
import threading
from queue import Queue
from typing import Any, Callable

logger = logging.getLogger(__name__)


class RemoteDispatcher:
    """
    Cola de escritura hacia el backend con un hilo trabajador.

    Uso:
        dispatcher = RemoteDispatcher()
        dispatcher.submit('insertar products/1', gateway.insert, 'products', record)
    """

    def __init__(self):
        self._queue: Queue = Queue()
        self._worker = None
        self._lock = threading.Lock()
        self._shutdown = False
        self.failures = 0

    def _start_worker(self) -> None:
        """Inicia el hilo trabajador si no está corriendo"""
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._worker_loop, name='remote-dispatcher', daemon=True)
                self._worker.start()

    def _worker_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:  # Señal de cierre
                    return
                self._run(*item)
            finally:
                self._queue.task_done()

    def _run(self, label: str, func: Callable[..., Any], args: tuple) -> None:
        try:
            func(*args)
            logger.debug(f"[REMOTO] OK: {label}")
        except Exception as e:
            self.failures += 1
            logger.warning(f"[REMOTO] Falló '{label}': {e}")

    def submit(self, label: str, func: Callable[..., Any], *args: Any) -> None:
        """
        Encola una llamada remota sin esperar el resultado.

        Args:
            label: Descripción legible para el log
            func: Función a ejecutar (p. ej. gateway.insert)
            *args: Argumentos de la función
        """
        if self._shutdown:
            logger.warning(f"[REMOTO] Despachador cerrado, se descarta '{label}'")
            return
        self._start_worker()
        self._queue.put((label, func, args))

    def flush(self, timeout: float = None) -> bool:
        """
        Espera a que terminen todas las llamadas encoladas.

        Returns:
            True si la cola quedó vacía dentro del timeout
        """
        if timeout is None:
            self._queue.join()
            return True
        done = threading.Event()

        def _wait():
            self._queue.join()
            done.set()

        threading.Thread(target=_wait, daemon=True).start()
        return done.wait(timeout)

    def close(self, timeout: float = 2.0) -> None:
        """Vacía la cola y detiene el hilo trabajador."""
        self.flush(timeout)
        self._shutdown = True
        if self._worker is not None and self._worker.is_alive():
            self._queue.put(None)
            self._worker.join(timeout=timeout)

    @property
    def pending(self) -> int:
        return self._queue.unfinished_tasks
