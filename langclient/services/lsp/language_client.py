"""
Language client: owns the connection to one language server.

The client runs a small state machine::

    IDLE -> STARTING -> RUNNING -> STOPPING -> STOPPED

start() and stop() return concurrent.futures.Future objects right away and do
the blocking work (spawn, handshake, shutdown) on worker threads. A stopped
client is finished; build a new one to connect again.
"""

import os
import threading
from concurrent.futures import Future
from concurrent.futures import wait as wait_futures
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from loguru import logger

from langclient import __version__
from langclient.utils.error_utils import createError, get_error_type, raiseError
from langclient.utils.file_utils import path_to_uri

from .descriptor import ServerDescriptor
from .document_selector import DocumentSelector
from .documents import TextDocument
from .exceptions import LSPErrorType
from .jsonrpc_client import JSONRPCClient
from .transport import BaseTransport, create_transport

StateListener = Callable[["ClientState", "ClientState"], None]
ErrorListener = Callable[[Exception], None]


class ClientState(Enum):
    """Lifecycle states of a language client."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class ClientSession:
    """The live connection created by a successful start()."""

    transport: BaseTransport
    rpc: JSONRPCClient
    capabilities: Dict[str, Any]
    server_info: Optional[Dict[str, Any]] = None
    open_documents: Set[str] = field(default_factory=set)


def _resolved_future(result: Any = None) -> Future:
    future: Future = Future()
    future.set_result(result)
    return future


def _failed_future(error: Exception) -> Future:
    future: Future = Future()
    future.set_exception(error)
    return future


class LanguageClient:
    """
    Client side of a Language Server Protocol connection.

    Documents are only forwarded to the server when the document selector
    matches them and the client is running.
    """

    def __init__(
        self,
        client_id: str,
        name: str,
        descriptor: ServerDescriptor,
        document_selector: DocumentSelector,
        root_path: Optional[str] = None,
        init_options: Optional[Dict[str, Any]] = None,
        handshake_timeout: float = 10.0,
        shutdown_timeout: float = 5.0,
        connect_timeout: float = 10.0,
        transport_factory: Callable[..., BaseTransport] = create_transport,
    ):
        self.client_id = client_id
        self.name = name
        self.descriptor = descriptor
        self.document_selector = document_selector
        self.root_path = os.path.abspath(root_path) if root_path else None
        self.init_options = init_options or {}
        self.handshake_timeout = handshake_timeout
        self.shutdown_timeout = shutdown_timeout
        self.connect_timeout = connect_timeout
        self._transport_factory = transport_factory

        # Condition over an RLock; also used to wait for diagnostics
        self._lock = threading.Condition()
        self._state = ClientState.IDLE
        self._session: Optional[ClientSession] = None
        self._start_future: Optional[Future] = None
        self._stop_future: Optional[Future] = None
        self._diagnostics: Dict[str, List[Dict[str, Any]]] = {}

        self._state_listeners: List[StateListener] = []
        self._session_ended_listeners: List[ErrorListener] = []
        self._protocol_error_listeners: List[ErrorListener] = []

    def __repr__(self) -> str:
        return f"LanguageClient({self.client_id!r}, state={self._state.value})"

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def session(self) -> Optional[ClientSession]:
        return self._session

    @property
    def is_running(self) -> bool:
        return self._state is ClientState.RUNNING

    @property
    def capabilities(self) -> Dict[str, Any]:
        session = self._session
        return dict(session.capabilities) if session else {}

    def on_state_change(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def on_session_ended(self, listener: ErrorListener) -> None:
        """Called when the connection is lost while the client is running."""
        self._session_ended_listeners.append(listener)

    def on_protocol_error(self, listener: ErrorListener) -> None:
        self._protocol_error_listeners.append(listener)

    def _transition(self, new_state: ClientState) -> Tuple[ClientState, ClientState]:
        # Callers hold self._lock
        old_state = self._state
        self._state = new_state
        logger.debug(f"{self.client_id}: {old_state.value} -> {new_state.value}")
        return old_state, new_state

    @staticmethod
    def _call_listener(listener, *args) -> None:
        # Listener exceptions are logged, never propagated
        try:
            listener(*args)
        except Exception as e:
            logger.opt(exception=e).error(f"Listener {listener!r} failed")

    def _emit_state(self, transition: Optional[Tuple[ClientState, ClientState]]) -> None:
        if transition is None or transition[0] is transition[1]:
            return
        for listener in list(self._state_listeners):
            self._call_listener(listener, *transition)

    def start(self) -> Future:
        """
        Launch the server and perform the initialize handshake.

        Returns a future resolving to the server's InitializeResult. Only
        valid from IDLE; any other state yields a failed future and leaves
        the client untouched.
        """
        with self._lock:
            if self._state is not ClientState.IDLE:
                logger.warning(
                    f"Ignoring start() of {self.client_id} in state {self._state.value}"
                )
                return _failed_future(
                    createError(
                        LSPErrorType.INVALID_STATE,
                        f"Cannot start {self.client_id}: client is {self._state.value}",
                        RuntimeError,
                    )
                )
            self._start_future = Future()
            future = self._start_future
            transition = self._transition(ClientState.STARTING)

        self._emit_state(transition)
        threading.Thread(
            target=self._run_start, name=f"{self.client_id}-start", daemon=True
        ).start()
        return future

    def _initialize_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "processId": os.getpid(),
            "clientInfo": {"name": "langclient", "version": __version__},
            "rootUri": None,
            "capabilities": {
                "textDocument": {
                    "synchronization": {
                        "dynamicRegistration": False,
                        "didSave": False,
                    },
                    "publishDiagnostics": {"versionSupport": True},
                    "codeAction": {"dynamicRegistration": False},
                    "formatting": {"dynamicRegistration": False},
                    "definition": {"dynamicRegistration": False},
                },
                "workspace": {"configuration": True},
            },
        }
        if self.init_options:
            params["initializationOptions"] = self.init_options
        if self.root_path:
            root_uri = path_to_uri(self.root_path)
            params["rootUri"] = root_uri
            params["rootPath"] = self.root_path
            params["workspaceFolders"] = [
                {"uri": root_uri, "name": os.path.basename(self.root_path)}
            ]
        return params

    def _run_start(self) -> None:
        transport: Optional[BaseTransport] = None
        rpc: Optional[JSONRPCClient] = None
        try:
            transport = self._transport_factory(
                self.descriptor,
                connect_timeout=self.connect_timeout,
                cwd=self.root_path,
            )
            transport.open()

            rpc = JSONRPCClient(transport.reader, transport.writer, name=self.client_id)
            rpc.on_notification(
                "textDocument/publishDiagnostics", self._handle_diagnostics
            )
            rpc.on_protocol_error(self._handle_protocol_error)
            connection = rpc
            rpc.on_close(lambda error: self._handle_transport_closed(connection, error))

            result = rpc.initialize(self._initialize_params(), self.handshake_timeout)
        except Exception as e:
            error = e
            if get_error_type(e) not in (
                LSPErrorType.LAUNCH_FAILURE,
                LSPErrorType.HANDSHAKE_FAILURE,
            ):
                error = createError(
                    LSPErrorType.HANDSHAKE_FAILURE,
                    f"{self.client_id} handshake failed: {e}",
                    RuntimeError,
                )
                error.__cause__ = e
            self._fail_start(transport, error)
            return

        with self._lock:
            self._session = ClientSession(
                transport=transport,
                rpc=rpc,
                capabilities=result.get("capabilities", {}),
                server_info=result.get("serverInfo"),
            )
            transition = None
            if self._state is ClientState.STARTING:
                transition = self._transition(ClientState.RUNNING)
            # In STOPPING the pending stop() takes the session down
            lost_connection = rpc.closed

        server_info = result.get("serverInfo") or {}
        logger.info(
            f"{self.name} started ({server_info.get('name', self.descriptor.command)})"
        )
        self._emit_state(transition)
        self._start_future.set_result(result)

        if lost_connection:
            self._handle_transport_closed(
                rpc,
                createError(
                    LSPErrorType.TRANSPORT_CLOSED,
                    f"Connection to {self.client_id} closed",
                    ConnectionError,
                ),
            )

    def _fail_start(self, transport: Optional[BaseTransport], error: Exception) -> None:
        logger.error(f"Failed to start {self.name}: {error}")
        if transport is not None:
            transport.close()

        with self._lock:
            self._session = None
            transition = self._transition(ClientState.STOPPED)

        self._emit_state(transition)
        self._start_future.set_exception(error)

    def stop(self) -> Future:
        """
        Shut the session down and release the server.

        From IDLE this is a no-op returning a resolved future. Repeated calls
        return the same future and never re-send shutdown.
        """
        with self._lock:
            if self._state is ClientState.IDLE:
                return _resolved_future()
            if self._stop_future is not None:
                return self._stop_future
            if self._state is ClientState.STOPPED:
                self._stop_future = _resolved_future()
                return self._stop_future

            self._stop_future = Future()
            future = self._stop_future
            transition = self._transition(ClientState.STOPPING)

        self._emit_state(transition)
        threading.Thread(
            target=self._run_stop, name=f"{self.client_id}-stop", daemon=True
        ).start()
        return future

    def _run_stop(self) -> None:
        transition = None
        try:
            # No mid-handshake cancellation: let an in-flight start settle first
            if self._start_future is not None:
                wait_futures([self._start_future])

            with self._lock:
                session = self._session

            if session is not None:
                logger.debug(f"Shutting down {self.client_id}")
                session.rpc.shutdown(self.shutdown_timeout)
                session.transport.close()
                session.rpc.wait_closed(self.shutdown_timeout)
        finally:
            with self._lock:
                self._session = None
                if self._state is not ClientState.STOPPED:
                    transition = self._transition(ClientState.STOPPED)

            self._emit_state(transition)
            logger.info(f"{self.name} stopped")
            self._stop_future.set_result(None)

    def _handle_transport_closed(self, rpc: JSONRPCClient, error: Exception) -> None:
        with self._lock:
            session = self._session
            if session is None or session.rpc is not rpc:
                return
            if self._state is not ClientState.RUNNING:
                return  # expected end of a shutdown
            self._session = None
            transition = self._transition(ClientState.STOPPED)

        logger.warning(f"{self.name} connection lost: {error}")
        session.transport.close()
        self._emit_state(transition)
        for listener in list(self._session_ended_listeners):
            self._call_listener(listener, error)

    def _handle_protocol_error(self, error: Exception) -> None:
        for listener in list(self._protocol_error_listeners):
            self._call_listener(listener, error)

    def _running_session(self) -> Optional[ClientSession]:
        # Callers hold self._lock
        if self._state is ClientState.RUNNING:
            return self._session
        return None

    def send_request(self, method: str, params: Any = None) -> Future:
        """Send a request to the server; only valid while running."""
        with self._lock:
            session = self._running_session()
        if session is None:
            return _failed_future(
                createError(
                    LSPErrorType.INVALID_STATE,
                    f"Cannot send {method}: {self.client_id} is {self._state.value}",
                    RuntimeError,
                )
            )
        return session.rpc.send_request(method, params)

    def send_notification(self, method: str, params: Any = None) -> None:
        """Send a notification to the server; only valid while running."""
        with self._lock:
            session = self._running_session()
        if session is None:
            raiseError(
                LSPErrorType.INVALID_STATE,
                f"Cannot send {method}: {self.client_id} is {self._state.value}",
                RuntimeError,
            )
        session.rpc.send_notification(method, params)

    def send_document_request(
        self, document: TextDocument, method: str, params: Optional[Dict[str, Any]] = None
    ) -> Optional[Future]:
        """
        Send a request about a document.

        Returns None without contacting the server when the document is not
        matched by the document selector.
        """
        if not self.document_selector.matches_document(document):
            logger.debug(f"Not sending {method} for {document.uri}: outside selector")
            return None
        payload = dict(params or {})
        payload["textDocument"] = document.to_identifier()
        return self.send_request(method, payload)

    def _forward(self, session: ClientSession, method: str, params: Dict[str, Any]) -> bool:
        try:
            session.rpc.send_notification(method, params)
        except ConnectionError as e:
            logger.debug(f"Dropped {method}: {e}")
            return False
        return True

    def did_open(self, document: TextDocument) -> bool:
        """Forward a document open event; returns whether it was sent."""
        if not self.document_selector.matches_document(document):
            return False
        with self._lock:
            session = self._running_session()
            if session is None or document.uri in session.open_documents:
                return False
            session.open_documents.add(document.uri)
        return self._forward(
            session, "textDocument/didOpen", {"textDocument": document.to_item()}
        )

    def did_change(self, document: TextDocument) -> bool:
        """Forward the full new content of an open document."""
        if not self.document_selector.matches_document(document):
            return False
        with self._lock:
            session = self._running_session()
            if session is None or document.uri not in session.open_documents:
                return False
        return self._forward(
            session,
            "textDocument/didChange",
            {
                "textDocument": document.to_versioned_identifier(),
                "contentChanges": [{"text": document.text}],
            },
        )

    def did_close(self, document: TextDocument) -> bool:
        """Forward a document close event."""
        if not self.document_selector.matches_document(document):
            return False
        with self._lock:
            session = self._running_session()
            if session is None or document.uri not in session.open_documents:
                return False
            session.open_documents.discard(document.uri)
            self._diagnostics.pop(document.uri, None)
        return self._forward(
            session, "textDocument/didClose", {"textDocument": document.to_identifier()}
        )

    def _handle_diagnostics(self, params: Any) -> None:
        if not isinstance(params, dict) or not params.get("uri"):
            return
        uri = params["uri"]
        diagnostics = params.get("diagnostics")
        if not isinstance(diagnostics, list):
            diagnostics = []
        with self._lock:
            self._diagnostics[uri] = list(diagnostics)
            self._lock.notify_all()
        logger.debug(f"Received {len(diagnostics)} diagnostic(s) for {uri}")

    def get_diagnostics(self, uri: str) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._diagnostics.get(uri, []))

    def clear_diagnostics(self, uri: str) -> None:
        with self._lock:
            self._diagnostics.pop(uri, None)

    def wait_for_diagnostics(
        self, uri: str, timeout: Optional[float] = None
    ) -> Optional[List[Dict[str, Any]]]:
        """Block until diagnostics for the URI arrive; None on timeout."""
        with self._lock:
            if not self._lock.wait_for(lambda: uri in self._diagnostics, timeout):
                return None
            return list(self._diagnostics[uri])
