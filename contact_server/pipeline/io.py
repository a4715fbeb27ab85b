"""HTTP Input/Output operations."""

import logging
import socket
import time
import urllib.parse
from typing import Optional, Tuple

from contact_server.bootstrap.config import HEADER_DELIMITER, ServerConfig
from contact_server.domain.correlation_id import (
    bind_request_id,
    current_request_id,
    get_logger,
)
from contact_server.domain.http_types import HttpRequest, HttpResponse
from contact_server.lifecycle.state import ServerLifecycle
from contact_server.pipeline.validation import (
    determine_content_length,
    enforce_header_size,
)

IO_LOGGER = get_logger("io")

IDLE_POLL_SECONDS = 0.25


def _recv_with_deadline(
    client_socket: socket.socket, deadline_ns: int, poll_seconds: Optional[float] = None
) -> bytes:
    """Receive data from socket with a deadline, raising TimeoutError if exceeded."""
    remaining_ns = deadline_ns - time.monotonic_ns()
    if remaining_ns <= 0:
        raise TimeoutError("Request deadline exceeded")
    timeout_seconds = remaining_ns / 1_000_000_000
    if poll_seconds is not None:
        timeout_seconds = min(timeout_seconds, poll_seconds)
    client_socket.settimeout(timeout_seconds)
    return client_socket.recv(4096)


class SocketReader:
    """Reads a client socket against a per-request read deadline.

    While waiting for the first byte of a request the reader polls, so an
    idle keep-alive connection is released as soon as the server drains.
    """

    def __init__(
        self,
        client_socket: socket.socket,
        read_timeout: float,
        lifecycle: Optional[ServerLifecycle] = None,
    ) -> None:
        self._socket = client_socket
        self._read_timeout_ns = int(read_timeout * 1_000_000_000)
        self._lifecycle = lifecycle
        self._deadline_ns = 0
        self.start_request()

    def start_request(self) -> None:
        self._deadline_ns = time.monotonic_ns() + self._read_timeout_ns

    def _draining(self) -> bool:
        return self._lifecycle is not None and self._lifecycle.is_draining()

    def read(self, idle: bool = False) -> bytes:
        """Return the next chunk; ``b""`` means the connection is finished."""
        if not idle:
            return _recv_with_deadline(self._socket, self._deadline_ns)
        while True:
            if self._draining():
                return b""
            try:
                return _recv_with_deadline(
                    self._socket, self._deadline_ns, IDLE_POLL_SECONDS
                )
            except socket.timeout:
                if time.monotonic_ns() >= self._deadline_ns:
                    raise


def parse_headers(lines: list[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary."""
    parsed = {}
    for line in lines:
        if ":" in line:
            name, value = line.split(":", 1)
            parsed[name.strip().lower()] = value.strip()
    return parsed


def parse_request_line(request_line: str) -> Tuple[str, str, str]:
    """Parse the method, decoded path and raw query string from the request line."""
    try:
        method, target, version = request_line.split(" ", 2)
    except ValueError as exc:
        raise ValueError("Invalid request line") from exc
    if not version.startswith("HTTP/"):
        raise ValueError("Invalid HTTP version")

    parsed_target = urllib.parse.urlsplit(target)
    path = urllib.parse.unquote(parsed_target.path)
    if not path.startswith("/"):
        raise ValueError("Invalid request target")
    return method, path, parsed_target.query


def receive_request(
    reader: SocketReader, buffer: bytes, config: Optional[ServerConfig] = None
) -> Tuple[Optional[HttpRequest], bytes]:
    """Read bytes until a complete request is available."""
    limits = config or ServerConfig()
    while HEADER_DELIMITER not in buffer:
        enforce_header_size(len(buffer), limits.max_header_bytes)
        chunk = reader.read(idle=not buffer)
        if not chunk:
            return None, b""
        buffer += chunk

    header_block, remainder = buffer.split(HEADER_DELIMITER, 1)
    enforce_header_size(len(header_block), limits.max_header_bytes)
    header_lines = header_block.decode("iso-8859-1").split("\r\n")
    method, path, query = parse_request_line(header_lines[0])
    headers = parse_headers(header_lines[1:])

    incoming_request_id = headers.get("x-request-id")
    if incoming_request_id:
        bind_request_id(incoming_request_id)

    content_length = determine_content_length(headers, limits.max_body_bytes)

    while len(remainder) < content_length:
        chunk = reader.read()
        if not chunk:
            return None, b""
        remainder += chunk

    body = remainder[:content_length]
    leftover = remainder[content_length:]
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Parsed request",
            extra={"method": method, "path": path, "bytes_in": len(body)},
        )
    return HttpRequest(method, path, headers, body, query), leftover


def send_response(
    client_socket: socket.socket,
    response: HttpResponse,
    write_timeout: Optional[float] = None,
    include_body: bool = True,
) -> None:
    """Serialize and send the HTTP response over the socket.

    HEAD responses pass ``include_body=False``: the headers, including the
    real Content-Length, go out without the body.
    """
    headers = dict(response.headers)

    request_id = current_request_id()
    if request_id:
        headers["X-Request-ID"] = request_id

    headers["Content-Length"] = str(len(response.body))
    if response.close_connection:
        headers["Connection"] = "close"
    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    header_block = "\r\n".join(header_lines).encode("iso-8859-1") + HEADER_DELIMITER

    if write_timeout is not None:
        client_socket.settimeout(write_timeout)
    body = response.body if include_body else b""
    client_socket.sendall(header_block + body)
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Sent response",
            extra={
                "status_code": response.status_code,
                "bytes_out": len(body),
            },
        )
