"""Submission and listing endpoint for contact forms."""

import logging
from http import HTTPStatus

from contact_server.domain.correlation_id import get_logger
from contact_server.domain.errors import StorageError, ValidationError
from contact_server.domain.form_record import FormRecord, validate
from contact_server.domain.http_types import HttpRequest, HttpResponse
from contact_server.domain.response_builders import (
    json_response,
    not_found_response,
    text_response,
)
from contact_server.pipeline.forms import form_fields
from contact_server.storage.record_store import RecordStore

FORM_LOGGER = get_logger("handlers.form")

FORM_SAVED_MESSAGE = "form saved "


def _submit_form(
    request: HttpRequest, store: RecordStore, security_headers: dict[str, str]
) -> HttpResponse:
    try:
        record = FormRecord.from_form(form_fields(request))
        validate(record)
    except ValidationError as error:
        FORM_LOGGER.info(
            "Form submission rejected",
            extra={
                "event": "form_rejected",
                "error_type": type(error).__name__,
                "status_code": HTTPStatus.BAD_REQUEST.value,
            },
        )
        return text_response(
            HTTPStatus.BAD_REQUEST, str(error), request, security_headers
        )

    try:
        store.append(record)
    except StorageError as error:
        FORM_LOGGER.error(
            "Form submission could not be stored",
            extra={
                "event": "storage_error",
                "error_type": type(error).__name__,
                "status_code": HTTPStatus.INTERNAL_SERVER_ERROR.value,
            },
        )
        return text_response(
            HTTPStatus.INTERNAL_SERVER_ERROR, str(error), request, security_headers
        )

    FORM_LOGGER.info(
        "Form submission saved",
        extra={"event": "form_saved", "status_code": HTTPStatus.OK.value},
    )
    return text_response(HTTPStatus.OK, FORM_SAVED_MESSAGE, request, security_headers)


def _list_forms(
    request: HttpRequest, store: RecordStore, security_headers: dict[str, str]
) -> HttpResponse:
    try:
        records = store.load()
    except StorageError as error:
        FORM_LOGGER.error(
            "Stored forms could not be loaded",
            extra={
                "event": "storage_error",
                "error_type": type(error).__name__,
                "status_code": HTTPStatus.INTERNAL_SERVER_ERROR.value,
            },
        )
        return text_response(
            HTTPStatus.INTERNAL_SERVER_ERROR, str(error), request, security_headers
        )
    if FORM_LOGGER.logger.isEnabledFor(logging.DEBUG):
        FORM_LOGGER.debug(
            "Stored forms listed",
            extra={"event": "forms_listed", "records": len(records)},
        )
    return json_response(
        (record.to_dict() for record in records), request, security_headers
    )


def form_response(
    request: HttpRequest, store: RecordStore, security_headers: dict[str, str]
) -> HttpResponse:
    """Save a submission on POST, list submissions on GET, 404 otherwise."""
    if request.method == "POST":
        return _submit_form(request, store, security_headers)
    if request.method == "GET":
        return _list_forms(request, store, security_headers)
    FORM_LOGGER.warning(
        "Unsupported method",
        extra={
            "event": "method_not_supported",
            "method": request.method,
            "status_code": HTTPStatus.NOT_FOUND.value,
        },
    )
    return not_found_response(request, security_headers)
