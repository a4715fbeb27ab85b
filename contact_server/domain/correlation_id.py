"""Per-request correlation IDs carried through contextvars into log records."""

import contextvars
import logging
import uuid
from typing import Any, MutableMapping, Optional

LOGGER_PREFIX = "contact_server."

_request_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)


def new_request_id() -> str:
    """Return a fresh UUID4 string for a request."""
    return str(uuid.uuid4())


def current_request_id() -> Optional[str]:
    """Return the request ID bound to the running context, if any."""
    return _request_id.get()


def bind_request_id(request_id: Optional[str] = None) -> str:
    """Bind the given ID (or a new one) to the running context and return it."""
    value = request_id or new_request_id()
    _request_id.set(value)
    return value


def unbind_request_id() -> None:
    """Forget the request ID of the running context."""
    _request_id.set(None)


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Adds ``correlation_id`` and ``component`` to every record it emits."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["correlation_id"] = current_request_id() or "-"
        name = self.logger.name
        extra["component"] = (
            name[len(LOGGER_PREFIX) :] if name.startswith(LOGGER_PREFIX) else name
        )
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(component: str) -> CorrelationLoggerAdapter:
    """Return the adapter for a ``contact_server`` child logger."""
    return CorrelationLoggerAdapter(logging.getLogger(LOGGER_PREFIX + component), {})
