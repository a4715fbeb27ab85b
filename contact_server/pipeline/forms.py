"""Decoding of form-encoded request fields."""

import io
import re
import urllib.parse

from python_multipart import parse_form
from python_multipart.exceptions import FormParserError

from contact_server.domain.errors import FormParseError
from contact_server.domain.http_types import HttpRequest

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
MULTIPART_CONTENT_TYPE = "multipart/form-data"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _media_type(headers: dict[str, str]) -> str:
    return headers.get("content-type", "").split(";", 1)[0].strip().lower()


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as error:
        raise FormParseError("form payload is not valid UTF-8") from error


def parse_form_pairs(encoded: str) -> list[tuple[str, str]]:
    """Split an urlencoded string into ordered (name, value) pairs."""
    match = _BAD_ESCAPE.search(encoded)
    if match:
        escape = encoded[match.start() : match.start() + 3]
        raise FormParseError(f'invalid URL escape "{escape}"')
    try:
        return urllib.parse.parse_qsl(
            encoded, keep_blank_values=True, encoding="utf-8", errors="strict"
        )
    except UnicodeDecodeError as error:
        raise FormParseError("form payload is not valid UTF-8") from error


def parse_multipart_pairs(content_type: str, body: bytes) -> list[tuple[str, str]]:
    """Return the non-file parts of a multipart/form-data body in order.

    File parts are discarded. Malformed bodies raise FormParseError.
    """
    pairs: list[tuple[str, str]] = []

    def on_field(field) -> None:
        value = field.value or b""
        pairs.append((_decode(field.field_name or b""), _decode(value)))

    def on_file(file) -> None:
        file.close()

    headers = {"Content-Type": content_type, "Content-Length": str(len(body))}
    try:
        parse_form(headers, io.BytesIO(body), on_field, on_file)
    except FormParserError as error:
        raise FormParseError(f"malformed multipart form: {error}") from error
    return pairs


def form_fields(request: HttpRequest) -> dict[str, str]:
    """Return the first value of every submitted field.

    Body fields of an urlencoded or multipart POST take precedence over
    query-string fields with the same name. Bodies of any other content type
    contribute nothing.
    """
    pairs: list[tuple[str, str]] = []
    if request.method == "POST":
        media_type = _media_type(request.headers)
        if media_type == FORM_CONTENT_TYPE:
            pairs.extend(parse_form_pairs(_decode(request.body)))
        elif media_type == MULTIPART_CONTENT_TYPE:
            pairs.extend(
                parse_multipart_pairs(request.headers["content-type"], request.body)
            )
    if request.query:
        pairs.extend(parse_form_pairs(request.query))

    fields: dict[str, str] = {}
    for name, value in pairs:
        fields.setdefault(name, value)
    return fields
