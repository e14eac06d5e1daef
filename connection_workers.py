"""One worker thread per accepted client socket."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

ClientAddress = tuple[str, int]
ClientHandler = Callable[[object, ClientAddress], None]


class ConnectionWorkers:
    """Spawns an isolated thread for each connection and tracks live workers."""

    def __init__(self, handler: ClientHandler) -> None:
        self._handler = handler
        self._active_jobs = 0
        self._spawned_total = 0
        self._active_lock = threading.Lock()
        self._drain_condition = threading.Condition(self._active_lock)

    @property
    def active_count(self) -> int:
        with self._active_lock:
            return self._active_jobs

    @property
    def spawned_total(self) -> int:
        with self._active_lock:
            return self._spawned_total

    def spawn(self, client_socket: object, address: ClientAddress) -> threading.Thread:
        with self._drain_condition:
            self._active_jobs += 1
            self._spawned_total += 1
            index = self._spawned_total

        worker = threading.Thread(
            target=self._run,
            args=(client_socket, address),
            name=f"http-conn-{index}",
            daemon=True,
        )
        try:
            worker.start()
        except RuntimeError:
            self._finish()
            raise
        return worker

    def wait_for_drain(self, timeout: float) -> bool:
        with self._drain_condition:
            deadline = time.monotonic() + timeout
            while self._active_jobs:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._drain_condition.wait(timeout=min(remaining, 0.1))
            return True

    def _run(self, client_socket: object, address: ClientAddress) -> None:
        try:
            self._handler(client_socket, address)
        finally:
            self._finish()

    def _finish(self) -> None:
        with self._drain_condition:
            self._active_jobs = max(0, self._active_jobs - 1)
            self._drain_condition.notify_all()
