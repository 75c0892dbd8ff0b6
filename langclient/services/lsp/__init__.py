"""
Language client for out-of-process language servers.

Main Components:
- ServerDescriptor / TransportKind: how to launch a server
- DocumentSelector: which documents the server sees
- LanguageClient: connection state machine with start()/stop()
- LSPManager: owner of the active client between activation and deactivation
- LintChecker: collect published diagnostics for a file
- LSPErrorType: typed errors for better error handling

Usage:
    from langclient.services.lsp import LSPManager

    manager = LSPManager()
    manager.activate().result()
    ...
    manager.deactivate().result()
"""

from .descriptor import ServerDescriptor, TransportKind
from .document_selector import DocumentFilter, DocumentSelector
from .documents import TextDocument
from .exceptions import LSPErrorType
from .jsonrpc_client import JSONRPCClient
from .language_client import ClientSession, ClientState, LanguageClient
from .languages import BaseLSP, LSPFactory, RomeLSP, TypeScriptLSP
from .lint_checker import LintChecker
from .lsp_manager import LSPManager
from .transport import (
    BaseTransport,
    PipeTransport,
    SocketTransport,
    StdioTransport,
    create_transport,
)

__all__ = [
    "ServerDescriptor",
    "TransportKind",
    "DocumentFilter",
    "DocumentSelector",
    "TextDocument",
    "LSPErrorType",
    "JSONRPCClient",
    "ClientSession",
    "ClientState",
    "LanguageClient",
    "BaseLSP",
    "RomeLSP",
    "TypeScriptLSP",
    "LSPFactory",
    "LintChecker",
    "LSPManager",
    "BaseTransport",
    "StdioTransport",
    "PipeTransport",
    "SocketTransport",
    "create_transport",
]
