"""
Shared pytest fixtures: a scripted fake language server and client builders.
"""

import sys
import time
from pathlib import Path

import pytest
from loguru import logger

from langclient.config import settings
from langclient.services.lsp.descriptor import ServerDescriptor, TransportKind
from langclient.services.lsp.document_selector import DocumentSelector
from langclient.services.lsp.language_client import LanguageClient

FAKE_SERVER = Path(__file__).parent / "fixtures" / "fake_lsp_server.py"

JS_SELECTOR = DocumentSelector(
    [
        {"scheme": "file", "language": "javascript"},
        {"scheme": "file", "language": "typescript"},
    ]
)


def wait_until(condition, timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll condition until it is truthy or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return bool(condition())


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the user's ~/.langclient configuration."""
    monkeypatch.delenv(settings.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setattr(
        settings, "DEFAULT_CONFIG_PATH", str(tmp_path / "no-config" / "system.json")
    )
    monkeypatch.setattr(settings, "_config_instance", None)
    yield
    settings._config_instance = None


@pytest.fixture
def server_log(tmp_path) -> Path:
    return tmp_path / "server.log"


@pytest.fixture
def server_methods(server_log):
    """Return the messages the fake server has received so far."""

    def read():
        if not server_log.exists():
            return []
        return server_log.read_text(encoding="utf-8").splitlines()

    return read


@pytest.fixture
def server_args(server_log):
    def build(*flags):
        return [str(FAKE_SERVER), f"--log={server_log}", *flags]

    return build


@pytest.fixture
def make_descriptor(server_args):
    def build(*flags, transport=TransportKind.STDIO):
        return ServerDescriptor.create(sys.executable, transport, server_args(*flags))

    return build


@pytest.fixture
def make_client(make_descriptor, tmp_path):
    """Build clients for the fake server and stop them all after the test."""
    clients = []

    def build(*flags, transport=TransportKind.STDIO, selector=JS_SELECTOR, **kwargs):
        kwargs.setdefault("handshake_timeout", 5.0)
        kwargs.setdefault("shutdown_timeout", 2.0)
        kwargs.setdefault("connect_timeout", 5.0)
        client = LanguageClient(
            "fake",
            "Fake Server",
            make_descriptor(*flags, transport=transport),
            selector,
            root_path=str(tmp_path),
            **kwargs,
        )
        clients.append(client)
        return client

    yield build

    for client in clients:
        client.stop().result(timeout=15)


@pytest.fixture
def reset_logging():
    """Put loguru back to a plain stderr sink after setup_logging() ran."""
    yield
    logger.remove()
    logger.add(sys.stderr)
