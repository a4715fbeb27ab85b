"""Worker thread logic for handling individual client connections."""

import socket
import threading
import time
from typing import Optional

from contact_server.bootstrap.config import SECURITY_HEADERS
from contact_server.domain.correlation_id import (
    bind_request_id,
    get_logger,
    unbind_request_id,
)
from contact_server.domain.http_types import HttpRequest
from contact_server.domain.response_builders import (
    bad_request_response,
    draining_response,
    entity_too_large_response,
    header_too_large_response,
)
from contact_server.pipeline.io import SocketReader, receive_request, send_response
from contact_server.pipeline.router import route_request
from contact_server.pipeline.validation import (
    RequestEntityTooLarge,
    RequestHeaderTooLarge,
)
from contact_server.transport.context import WorkerContext

WORKER_LOGGER = get_logger("transport.worker")


def _read_request(
    reader: SocketReader,
    client_socket: socket.socket,
    buffer: bytes,
    context: WorkerContext,
    client_addr_str: str,
) -> tuple[Optional[HttpRequest], bytes]:
    """Read one request, answering framing errors before giving up on the socket."""
    write_timeout = context.config.write_timeout
    try:
        return receive_request(reader, buffer, context.config)
    except RequestHeaderTooLarge:
        WORKER_LOGGER.warning(
            "Request header size exceeded limit",
            extra={"event": "header_size_exceeded", "client": client_addr_str},
        )
        response = header_too_large_response(SECURITY_HEADERS)
    except RequestEntityTooLarge:
        WORKER_LOGGER.warning(
            "Request body size exceeded limit",
            extra={"event": "body_size_exceeded", "client": client_addr_str},
        )
        response = entity_too_large_response(SECURITY_HEADERS)
    except ValueError:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={"event": "malformed_request", "client": client_addr_str},
        )
        response = bad_request_response(None, SECURITY_HEADERS)
    send_response(client_socket, response, write_timeout)
    return None, b""


def _cleanup_worker(
    context: WorkerContext,
    thread: threading.Thread,
    client_socket: socket.socket,
    client_addr_str: str,
) -> None:
    context.lifecycle.cleanup_worker(thread)
    try:
        client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    client_socket.close()
    WORKER_LOGGER.debug(
        "Socket closed",
        extra={"event": "socket_closed", "client": client_addr_str},
    )
    unbind_request_id()


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Process requests on a client socket until the connection is closed."""
    current_thread = threading.current_thread()
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    reader = SocketReader(
        client_socket, context.config.read_timeout, context.lifecycle
    )
    buffer = b""

    try:
        if context.lifecycle.is_draining():
            send_response(
                client_socket,
                draining_response(SECURITY_HEADERS),
                context.config.write_timeout,
            )
            return

        while True:
            bind_request_id()
            reader.start_request()
            request, buffer = _read_request(
                reader, client_socket, buffer, context, client_addr_str
            )
            if request is None:
                break

            started = time.monotonic()
            response = route_request(request, context)
            if context.lifecycle.is_draining():
                response.close_connection = True
            send_response(
                client_socket,
                response,
                context.config.write_timeout,
                include_body=request.method != "HEAD",
            )

            WORKER_LOGGER.info(
                "Request completed",
                extra={
                    "event": "request_complete",
                    "client": client_addr_str,
                    "method": request.method,
                    "route": request.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.monotonic() - started) * 1000, 3),
                },
            )
            unbind_request_id()

            if response.close_connection:
                break
    except (
        ConnectionError,
        TimeoutError,
        OSError,
        UnicodeDecodeError,
    ) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={
                "event": "connection_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "client": client_addr_str,
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
    finally:
        _cleanup_worker(context, current_thread, client_socket, client_addr_str)
