import json
import sys

import pytest

from langclient.config.settings import Config
from langclient.services.lsp.descriptor import TransportKind
from langclient.services.lsp.exceptions import LSPErrorType
from langclient.services.lsp.language_client import ClientState
from langclient.services.lsp.lsp_manager import LSPManager
from langclient.utils.error_utils import get_error_type

TIMEOUT = 10


@pytest.fixture
def fake_settings(tmp_path, server_args):
    path = tmp_path / "system.json"
    path.write_text(
        json.dumps(
            {
                "server": {"command": sys.executable, "args": server_args()},
                "client": {
                    "client_id": "fake",
                    "name": "Fake Server",
                    "handshake_timeout": 5.0,
                    "shutdown_timeout": 2.0,
                },
            }
        ),
        encoding="utf-8",
    )
    return Config(str(path))


@pytest.fixture
def manager(fake_settings, tmp_path):
    manager = LSPManager(settings=fake_settings, root_path=str(tmp_path))
    yield manager
    future = manager.deactivate()
    if future is not None:
        future.result(timeout=TIMEOUT)


def test_create_client_from_configuration(manager, tmp_path):
    client = manager.create_client()

    assert client.client_id == "fake"
    assert client.descriptor.command == sys.executable
    assert client.descriptor.transport is TransportKind.STDIO
    assert client.document_selector.matches("file", "javascript")
    assert client.handshake_timeout == 5.0
    assert client.root_path == str(tmp_path)
    assert client.state is ClientState.IDLE


def test_create_client_from_named_server(manager):
    client = manager.create_client("typescript")

    assert client.client_id == "typescript-language-server"
    assert client.descriptor.command == "typescript-language-server"
    assert client.init_options["preferences"]
    assert client.shutdown_timeout == 2.0


def test_create_client_unknown_server(manager):
    with pytest.raises(ValueError) as exc_info:
        manager.create_client("cobol")

    assert get_error_type(exc_info.value) is LSPErrorType.UNSUPPORTED_SERVER


def test_activate_then_deactivate(manager, server_methods):
    result = manager.activate().result(timeout=TIMEOUT)

    client = manager.client
    assert result["serverInfo"]["name"] == "fake-lsp"
    assert client.is_running

    manager.deactivate().result(timeout=TIMEOUT)
    assert manager.client is None
    assert client.state is ClientState.STOPPED
    assert server_methods()[-2:] == ["shutdown", "exit"]


def test_activate_twice_is_rejected(manager):
    manager.activate().result(timeout=TIMEOUT)

    with pytest.raises(RuntimeError) as exc_info:
        manager.activate()

    assert get_error_type(exc_info.value) is LSPErrorType.INVALID_STATE
    assert manager.client.is_running


def test_deactivate_without_activate_returns_none():
    assert LSPManager(settings=Config()).deactivate() is None


def test_failed_activation_reports_launch_failure(tmp_path):
    settings = Config()
    settings.server.command = str(tmp_path / "missing-server")
    manager = LSPManager(settings=settings)

    error = manager.activate().exception(timeout=TIMEOUT)

    assert get_error_type(error) is LSPErrorType.LAUNCH_FAILURE
    assert manager.client.state is ClientState.STOPPED
    assert manager.deactivate().result(timeout=TIMEOUT) is None
    assert manager.client is None


def test_manager_uses_global_config_by_default():
    manager = LSPManager()

    assert manager.settings.server.command == "rome_lsp"
    assert manager.create_client().name == "Language Server Rome"


def test_malformed_configured_selector_is_rejected():
    settings = Config()
    settings.client.document_selector = [{"language": "javascript"}]

    with pytest.raises(ValueError) as exc_info:
        LSPManager(settings=settings).create_client()

    assert get_error_type(exc_info.value) is LSPErrorType.INVALID_DESCRIPTOR
