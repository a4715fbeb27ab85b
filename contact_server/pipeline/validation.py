"""Request framing limits enforced while reading from the socket."""


class RequestEntityTooLarge(Exception):
    """Raised when a request body exceeds configured limits."""


class RequestHeaderTooLarge(Exception):
    """Raised when the header block exceeds the configured maximum."""


def enforce_header_size(header_bytes: int, max_header_bytes: int) -> None:
    """Raise RequestHeaderTooLarge when the header block is over the limit."""
    if header_bytes > max_header_bytes:
        raise RequestHeaderTooLarge


def determine_content_length(headers: dict[str, str], max_body_bytes: int) -> int:
    """Validate and return the declared Content-Length for the request."""
    transfer_encoding = headers.get("transfer-encoding")
    if transfer_encoding and transfer_encoding.lower() != "identity":
        raise ValueError("Unsupported Transfer-Encoding")
    header_value = headers.get("content-length")
    if header_value is None:
        return 0
    try:
        content_length = int(header_value)
    except ValueError as exc:
        raise ValueError("Invalid Content-Length") from exc
    if content_length < 0:
        raise ValueError("Negative Content-Length")
    if content_length > max_body_bytes:
        raise RequestEntityTooLarge
    return content_length
