"""Server lifecycle state management."""

import enum
import threading
import time

from contact_server.domain.correlation_id import get_logger

LIFECYCLE_LOGGER = get_logger("lifecycle")


class ServerState(enum.Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


_TRANSITIONS = {
    ServerState.STOPPED: {ServerState.STARTING},
    ServerState.STARTING: {ServerState.RUNNING, ServerState.STOPPED},
    ServerState.RUNNING: {ServerState.SHUTTING_DOWN},
    ServerState.SHUTTING_DOWN: {ServerState.STOPPED},
}


class ServerLifecycle:
    """Tracks the server state and its worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._state = ServerState.STOPPED
        self._workers: set[threading.Thread] = set()

    @property
    def state(self) -> ServerState:
        with self._lock:
            return self._state

    def transition(self, target: ServerState) -> None:
        """Move to ``target``, raising RuntimeError on an illegal transition."""
        with self._lock:
            if target not in _TRANSITIONS[self._state]:
                raise RuntimeError(
                    f"cannot move from {self._state.value} to {target.value}"
                )
            self._state = target
        LIFECYCLE_LOGGER.info(
            "Server state changed",
            extra={"event": "state_changed", "state": target.value},
        )

    def should_stop(self) -> bool:
        """Check if the server should stop accepting new connections."""
        return self._stop_event.is_set()

    def is_draining(self) -> bool:
        """Check if the server is in draining mode."""
        return self.state is ServerState.SHUTTING_DOWN

    def register_worker(self, thread: threading.Thread) -> None:
        with self._lock:
            self._workers.add(thread)

    def cleanup_worker(self, thread: threading.Thread) -> None:
        with self._lock:
            self._workers.discard(thread)

    def has_worker(self, thread: threading.Thread) -> bool:
        with self._lock:
            return thread in self._workers

    def active_worker_count(self) -> int:
        with self._lock:
            return len(self._workers)

    def begin_draining(self) -> None:
        """Stop accepting connections and let in-flight requests finish."""
        self.transition(ServerState.SHUTTING_DOWN)
        self._stop_event.set()

    def wait_for_workers(self, timeout: float) -> bool:
        """Wait for all worker threads to complete within the timeout."""
        deadline = time.monotonic() + timeout
        while True:
            with self._lock:
                self._workers = {w for w in self._workers if w.is_alive()}
                active_workers = list(self._workers)
            if not active_workers:
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                LIFECYCLE_LOGGER.warning(
                    "Shutdown timeout exceeded",
                    extra={
                        "event": "shutdown_timeout",
                        "remaining_workers": len(active_workers),
                    },
                )
                return False
            for worker in active_workers:
                worker.join(timeout=min(0.1, remaining))
                if time.monotonic() >= deadline:
                    break
