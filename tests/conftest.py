"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path
from typing import Generator, TypedDict

import pytest

from tests.utils.http import reserve_port, wait_for_port

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SERVER_ENTRYPOINT = PROJECT_ROOT / "main.py"
TEMPLATE_PATH = PROJECT_ROOT / "templates" / "form.html"


class ServerProcessInfo(TypedDict):
    """Metadata describing a running server fixture instance."""

    base_url: str
    host: str
    port: int
    data_file: Path
    process: subprocess.Popen[str]
    log_file: Path


def write_env_file(directory: Path, port: int) -> Path:
    """Write an environment file declaring PORT and return its path."""

    env_file = directory / ".env"
    env_file.write_text(f"PORT={port}\n")
    return env_file


def server_command(
    env_file: Path,
    data_file: Path,
    log_file: Path,
    template: Path = TEMPLATE_PATH,
) -> list[str]:
    """Build the command line launching the server entry point."""

    return [
        sys.executable,
        str(SERVER_ENTRYPOINT),
        "--env-file",
        str(env_file),
        "--host",
        "127.0.0.1",
        "--data-file",
        str(data_file),
        "--template",
        str(template),
        "--log-destination",
        str(log_file),
    ]


def server_env() -> dict[str, str]:
    """Return the test process environment minus any server configuration."""

    return {
        name: value
        for name, value in os.environ.items()
        if name != "PORT" and not name.startswith("CONTACT_SERVER_")
    }


def launch_server(directory: Path) -> Generator[ServerProcessInfo, None, None]:
    """Start the server against an empty store in ``directory``."""

    host = "127.0.0.1"
    port = reserve_port(host)
    data_file = directory / "forms.json"
    data_file.write_text("[]")
    log_file = directory / "server.log"
    env_file = write_env_file(directory, port)

    with subprocess.Popen(
        server_command(env_file, data_file, log_file),
        cwd=PROJECT_ROOT,
        env=server_env(),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    ) as process:
        try:
            wait_for_port(host, port)
        except Exception:
            process.terminate()
            stdout, stderr = process.communicate(timeout=5)
            print(f"\nServer stdout:\n{stdout}")
            print(f"\nServer stderr:\n{stderr}")
            raise

        yield {
            "base_url": f"http://{host}:{port}",
            "host": host,
            "port": port,
            "data_file": data_file,
            "process": process,
            "log_file": log_file,
        }

        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=7)
            except subprocess.TimeoutExpired:
                process.kill()


@pytest.fixture(name="server_process")
def _server_process(tmp_path: Path) -> Generator[ServerProcessInfo, None, None]:
    """Launch the contact form server in a background process."""

    yield from launch_server(tmp_path)


@pytest.fixture()
def base_url(server_process: ServerProcessInfo) -> str:
    """Expose the running server base URL to integration tests."""

    return server_process["base_url"]


@pytest.fixture()
def data_file(server_process: ServerProcessInfo) -> Path:
    """Expose the data file backing the running server."""

    return server_process["data_file"]
