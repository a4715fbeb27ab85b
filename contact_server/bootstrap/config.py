"""Server configuration, CLI argument parsing and environment file loading."""

import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from contact_server.domain.errors import StartupConfigError

ENV_PREFIX = "CONTACT_SERVER_"

READ_TIMEOUT_SECONDS = 10.0
WRITE_TIMEOUT_SECONDS = 10.0
MAX_HEADER_BYTES = 1 << 20
MAX_BODY_BYTES = 10 << 20
SHUTDOWN_GRACE_SECONDS = 5.0

HEADER_DELIMITER = b"\r\n\r\n"
FORMS_PATH = "/"
FORM_PAGE_PATH = "/addData"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "Content-Security-Policy": "default-src 'self'",
}


def _env_str(name: str, default: str) -> str:
    return os.getenv(ENV_PREFIX + name, default)


@dataclass
class ServerConfig:
    """Per-connection limits and the shutdown grace period."""

    read_timeout: float = READ_TIMEOUT_SECONDS
    write_timeout: float = WRITE_TIMEOUT_SECONDS
    max_header_bytes: int = MAX_HEADER_BYTES
    max_body_bytes: int = MAX_BODY_BYTES
    shutdown_grace_seconds: float = SHUTDOWN_GRACE_SECONDS


@dataclass(frozen=True)
class Settings:
    """Validated startup settings."""

    host: str
    port: int
    data_file: Path
    template_path: Path
    server: ServerConfig = field(default_factory=ServerConfig)


def parse_cli_args(argv: Optional[list[str]]) -> argparse.Namespace:
    """Return parsed CLI arguments, with defaults seeded from the environment."""
    parser = argparse.ArgumentParser(description="Contact form HTTP server")
    parser.add_argument(
        "--env-file",
        default=_env_str("ENV_FILE", ".env"),
        help="Environment file providing PORT",
    )
    parser.add_argument("--host", default=_env_str("HOST", "0.0.0.0"))
    parser.add_argument(
        "--data-file",
        default=_env_str("DATA_FILE", "data/forms.json"),
        help="JSON document holding stored submissions",
    )
    parser.add_argument(
        "--template",
        default=_env_str("TEMPLATE", "templates/form.html"),
        help="HTML template served on /addData",
    )
    parser.add_argument(
        "--log-level",
        default=_env_str("LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=_env_str("LOG_DESTINATION", "stdout"),
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=_env_str("LOG_FORMAT", "json").lower(),
        choices=["json", "text"],
        type=str.lower,
    )
    return parser.parse_args(argv)


def _parse_port(raw_port: str) -> int:
    try:
        port = int(raw_port)
    except ValueError as error:
        raise StartupConfigError(f"invalid port {raw_port!r}") from error
    if not 0 < port < 65536:
        raise StartupConfigError(f"port {port} out of range")
    return port


def load_settings(args: argparse.Namespace) -> Settings:
    """Load the environment file and build Settings, or raise StartupConfigError.

    Variables already present in the process environment are not overridden
    by the file.
    """
    env_path = Path(args.env_file)
    if not env_path.is_file():
        raise StartupConfigError(f"open {env_path.as_posix()}: no such file")
    load_dotenv(env_path, override=False)

    raw_port = os.getenv("PORT")
    if raw_port is None or not raw_port.strip():
        raise StartupConfigError("no port specified")

    return Settings(
        host=args.host,
        port=_parse_port(raw_port.strip()),
        data_file=Path(args.data_file),
        template_path=Path(args.template),
    )
