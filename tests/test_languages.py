import pytest

from langclient.services.lsp.descriptor import TransportKind
from langclient.services.lsp.document_selector import DocumentSelector
from langclient.services.lsp.exceptions import LSPErrorType
from langclient.services.lsp.languages import BaseLSP, LSPFactory, RomeLSP, TypeScriptLSP
from langclient.utils.error_utils import get_error_type


def test_rome_definition():
    rome = LSPFactory.create_lsp("rome")

    assert isinstance(rome, RomeLSP)
    assert rome.server_name == "rome_lsp"
    assert rome.display_name == "Language Server Rome"

    descriptor = rome.get_descriptor()
    assert descriptor.command == "rome_lsp"
    assert descriptor.transport is TransportKind.STDIO
    assert rome.document_selector.matches("file", "javascript")
    assert rome.document_selector.matches("file", "typescript")
    assert not rome.document_selector.matches("file", "typescriptreact")


def test_typescript_definition():
    typescript = LSPFactory.create_lsp("typescript")

    assert isinstance(typescript, TypeScriptLSP)
    assert typescript.document_selector.matches("file", "typescriptreact")
    assert "preferences" in typescript.init_options

    config = typescript.get_config()
    assert config["exec_name"] == "typescript-language-server"
    assert config["transport"] == "stdio"
    assert len(config["document_selector"]) == 4


def test_unknown_server_is_rejected():
    with pytest.raises(ValueError) as exc_info:
        LSPFactory.create_lsp("cobol")

    assert get_error_type(exc_info.value) is LSPErrorType.UNSUPPORTED_SERVER
    assert "rome" in str(exc_info.value)


def test_register_custom_definition(monkeypatch):
    monkeypatch.setattr(LSPFactory, "_lsp_classes", dict(LSPFactory._lsp_classes))

    class SocketLSP(BaseLSP):
        server_name = "socket-lsp"
        display_name = "Socket LSP"
        exec_name = "socket-lsp"
        document_selector = DocumentSelector([{"scheme": "file", "language": "go"}])
        transport = TransportKind.SOCKET
        args = ["--verbose"]

    LSPFactory.register_lsp("socket", SocketLSP)

    assert "socket" in LSPFactory.get_supported_servers()
    descriptor = LSPFactory.create_lsp("socket").get_descriptor()
    assert descriptor.transport is TransportKind.SOCKET
    assert descriptor.args == ("--verbose",)
