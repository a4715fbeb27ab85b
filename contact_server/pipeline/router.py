"""Request routing logic."""

import logging

from contact_server.bootstrap.config import FORM_PAGE_PATH, FORMS_PATH, SECURITY_HEADERS
from contact_server.domain.correlation_id import get_logger
from contact_server.domain.http_types import HttpRequest, HttpResponse
from contact_server.domain.response_builders import not_found_response
from contact_server.handlers.form_handler import form_response
from contact_server.handlers.page_handler import page_response
from contact_server.transport.context import WorkerContext

ROUTER_LOGGER = get_logger("pipeline.router")


def route_request(request: HttpRequest, context: WorkerContext) -> HttpResponse:
    """Route the request to the appropriate handler and return a response."""
    if request.path == FORMS_PATH:
        if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            ROUTER_LOGGER.debug(
                "Route matched", extra={"event": "route_matched", "route": FORMS_PATH}
            )
        return form_response(request, context.store, SECURITY_HEADERS)

    if request.path == FORM_PAGE_PATH:
        if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            ROUTER_LOGGER.debug(
                "Route matched",
                extra={"event": "route_matched", "route": FORM_PAGE_PATH},
            )
        return page_response(request, context.page, SECURITY_HEADERS)

    ROUTER_LOGGER.info(
        "No matching route found",
        extra={
            "event": "route_not_found",
            "route": request.path,
            "method": request.method,
        },
    )
    return not_found_response(request, SECURITY_HEADERS)
