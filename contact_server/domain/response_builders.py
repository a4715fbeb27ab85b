"""Pure HTTP response builders."""

import json
from http import HTTPStatus
from typing import Iterable, Optional

from contact_server.domain.http_types import HttpRequest, HttpResponse, should_close

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
JSON_CONTENT_TYPE = "application/json"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"


def status_line(status: HTTPStatus) -> str:
    """Format the HTTP/1.1 status line for the given status."""
    return f"HTTP/1.1 {status.value} {status.phrase}"


def _closes(request: Optional[HttpRequest]) -> bool:
    return should_close(request.headers) if request is not None else True


def text_response(
    status: HTTPStatus,
    message: str,
    request: Optional[HttpRequest],
    security_headers: dict[str, str],
) -> HttpResponse:
    """Return a plain-text response carrying ``message`` verbatim."""
    headers = {"Content-Type": TEXT_CONTENT_TYPE, **security_headers}
    return HttpResponse(
        status_line(status), headers, message.encode(), _closes(request)
    )


def json_response(
    payload: Iterable[dict[str, str]],
    request: HttpRequest,
    security_headers: dict[str, str],
) -> HttpResponse:
    """Return a 200 response with a compact JSON array followed by a newline."""
    body = (
        json.dumps(list(payload), separators=(",", ":"), ensure_ascii=False) + "\n"
    )
    headers = {"Content-Type": JSON_CONTENT_TYPE, **security_headers}
    return HttpResponse(
        status_line(HTTPStatus.OK), headers, body.encode(), _closes(request)
    )


def html_response(
    markup: bytes, request: HttpRequest, security_headers: dict[str, str]
) -> HttpResponse:
    """Return a 200 response carrying rendered HTML."""
    headers = {"Content-Type": HTML_CONTENT_TYPE, **security_headers}
    return HttpResponse(status_line(HTTPStatus.OK), headers, markup, _closes(request))


def not_found_response(
    request: HttpRequest, security_headers: dict[str, str]
) -> HttpResponse:
    """Return a 404 response with a plain ``not found`` body."""
    return text_response(HTTPStatus.NOT_FOUND, "not found", request, security_headers)


def bad_request_response(
    request: Optional[HttpRequest], security_headers: dict[str, str]
) -> HttpResponse:
    """Produce a 400 response for requests the transport cannot parse."""
    return text_response(
        HTTPStatus.BAD_REQUEST, "bad request", request, security_headers
    )


def header_too_large_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 431 response that always closes the connection."""
    return text_response(
        HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE,
        "request header fields too large",
        None,
        security_headers,
    )


def entity_too_large_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 413 response that always closes the connection."""
    return text_response(
        HTTPStatus.REQUEST_ENTITY_TOO_LARGE,
        "request body too large",
        None,
        security_headers,
    )


def draining_response(security_headers: dict[str, str]) -> HttpResponse:
    """Produce a 503 response for connections accepted while shutting down."""
    headers = {"Connection": "close", "Content-Type": TEXT_CONTENT_TYPE}
    headers.update(security_headers)
    return HttpResponse(
        status_line(HTTPStatus.SERVICE_UNAVAILABLE), headers, b"draining", True
    )
