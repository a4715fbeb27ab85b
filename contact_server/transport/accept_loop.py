"""Connection acceptance loop and the handle used to start and stop it."""

import logging
import socket
import threading

from contact_server.bootstrap.config import SECURITY_HEADERS, Settings
from contact_server.bootstrap.socket_factory import create_server_socket
from contact_server.domain.correlation_id import get_logger
from contact_server.domain.errors import BindError, ShutdownTimeoutError
from contact_server.domain.response_builders import draining_response
from contact_server.lifecycle.state import ServerState
from contact_server.pipeline.io import send_response
from contact_server.transport.context import WorkerContext
from contact_server.transport.worker import handle_client

ACCEPT_LOGGER = get_logger("transport.accept")


def _handle_accepted_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={
                "event": "client_accepted",
                "client": f"{client_address[0]}:{client_address[1]}",
            },
        )
    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, context),
        daemon=True,
    )
    context.lifecycle.register_worker(thread)
    thread.start()


def accept_connections(server_socket: socket.socket, context: WorkerContext) -> None:
    """Accept clients until the lifecycle asks to stop, then close the listener."""
    lifecycle = context.lifecycle
    try:
        while True:
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                if lifecycle.should_stop():
                    break
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            if lifecycle.is_draining():
                send_response(
                    client_socket,
                    draining_response(SECURITY_HEADERS),
                    context.config.write_timeout,
                )
                client_socket.close()
                continue

            _handle_accepted_client(client_socket, client_address, context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info("Listener closed", extra={"event": "listener_closed"})


class RunningServer:
    """Handle on a listener accepting connections on a background thread."""

    def __init__(self, server_socket: socket.socket, context: WorkerContext) -> None:
        self.context = context
        self.address = server_socket.getsockname()[:2]
        self._thread = threading.Thread(
            target=accept_connections,
            args=(server_socket, context),
            name="contact-server-accept",
            daemon=True,
        )

    def start(self) -> None:
        self._thread.start()
        self.context.lifecycle.transition(ServerState.RUNNING)

    def shutdown(self, grace_seconds: float) -> None:
        """Stop accepting and wait for in-flight requests.

        Raises ShutdownTimeoutError when workers are still running once
        ``grace_seconds`` have elapsed.
        """
        lifecycle = self.context.lifecycle
        lifecycle.begin_draining()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={"event": "shutdown_waiting", "grace_seconds": grace_seconds},
        )
        self._thread.join()
        if not lifecycle.wait_for_workers(grace_seconds):
            raise ShutdownTimeoutError(
                f"{lifecycle.active_worker_count()} request(s) still running "
                f"after {grace_seconds}s"
            )
        lifecycle.transition(ServerState.STOPPED)
        ACCEPT_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})


def start_server(settings: Settings, context: WorkerContext) -> RunningServer:
    """Bind the configured address and start accepting in the background.

    Raises BindError when the address cannot be acquired.
    """
    lifecycle = context.lifecycle
    lifecycle.transition(ServerState.STARTING)
    try:
        server_socket = create_server_socket(settings.host, settings.port)
    except BindError:
        lifecycle.transition(ServerState.STOPPED)
        raise

    server = RunningServer(server_socket, context)
    server.start()
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": server.address[0],
            "port": server.address[1],
        },
    )
    return server
