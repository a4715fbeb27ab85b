"""Listening socket creation."""

import socket

from contact_server.domain.correlation_id import get_logger
from contact_server.domain.errors import BindError

SOCKET_LOGGER = get_logger("socket")

ACCEPT_POLL_SECONDS = 0.5


def create_server_socket(host: str, port: int) -> socket.socket:
    """Bind and listen on ``host:port``, raising BindError on failure."""
    try:
        server_socket = socket.create_server((host, port))
    except OSError as error:
        SOCKET_LOGGER.critical(
            "Failed to bind listening socket",
            extra={
                "event": "bind_failed",
                "host": host,
                "port": port,
                "error_type": type(error).__name__,
            },
        )
        raise BindError(f"listen tcp {host}:{port}: {error}") from error
    server_socket.settimeout(ACCEPT_POLL_SECONDS)
    return server_socket
