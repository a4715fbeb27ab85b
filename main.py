"""Contact form HTTP server entry point."""

import signal
import sys
import threading
from typing import Optional

from contact_server.bootstrap.config import load_settings, parse_cli_args
from contact_server.bootstrap.logging_setup import configure_logging
from contact_server.domain.correlation_id import get_logger
from contact_server.domain.errors import (
    BindError,
    ShutdownTimeoutError,
    StartupConfigError,
)
from contact_server.handlers.page_handler import FormPage
from contact_server.lifecycle.state import ServerLifecycle
from contact_server.storage.record_store import JsonFileRecordStore
from contact_server.transport.accept_loop import start_server
from contact_server.transport.context import WorkerContext

SERVER_LOGGER = get_logger("server")

EXIT_OK = 0
EXIT_FATAL = 1


def install_signal_handlers(shutdown_requested: threading.Event) -> None:
    """Set ``shutdown_requested`` on SIGINT or SIGTERM."""

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={
                "event": "shutdown_signal_received",
                "signal": signal.Signals(signum).name,
            },
        )
        shutdown_requested.set()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)


def main(argv: Optional[list[str]] = None) -> int:
    """Start the server, wait for a termination signal, then drain and exit."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(
        args.log_level, args.log_destination, use_json=args.log_format == "json"
    )

    try:
        settings = load_settings(args)
        page = FormPage.load(settings.template_path)
    except StartupConfigError as error:
        SERVER_LOGGER.critical(
            "Startup configuration invalid",
            extra={"event": "startup_failed", "error": str(error)},
        )
        return EXIT_FATAL

    context = WorkerContext(
        store=JsonFileRecordStore(settings.data_file),
        page=page,
        lifecycle=ServerLifecycle(),
        config=settings.server,
    )
    shutdown_requested = threading.Event()
    install_signal_handlers(shutdown_requested)

    SERVER_LOGGER.info(
        "Starting contact form server",
        extra={
            "event": "server_starting",
            "host": settings.host,
            "port": settings.port,
            "data_file": settings.data_file.as_posix(),
            "template": settings.template_path.as_posix(),
            "log_destination": args.log_destination,
            "log_level": args.log_level,
        },
    )
    try:
        server = start_server(settings, context)
    except BindError as error:
        SERVER_LOGGER.critical(
            "Listener could not start",
            extra={"event": "startup_failed", "error": str(error)},
        )
        return EXIT_FATAL
    SERVER_LOGGER.info(
        "Add data page available",
        extra={"event": "form_page_ready", "route": "/addData"},
    )

    shutdown_requested.wait()
    SERVER_LOGGER.info("Shutting down server", extra={"event": "shutdown_started"})
    try:
        server.shutdown(settings.server.shutdown_grace_seconds)
    except ShutdownTimeoutError as error:
        SERVER_LOGGER.critical(
            "Server forced to shutdown",
            extra={"event": "shutdown_forced", "error": str(error)},
        )
        return EXIT_FATAL
    SERVER_LOGGER.info("Server exiting", extra={"event": "server_exiting"})
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
