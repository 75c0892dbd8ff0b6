"""
JSON-RPC client for LSP communication.
"""

import json
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, BinaryIO, Callable, Dict, List, Optional

from loguru import logger

from langclient.utils.error_utils import createError, get_error_type, raiseError

from .exceptions import LSPErrorType

# Frames larger than this are rejected without reading the body
MAX_CONTENT_LENGTH = 64 * 1024 * 1024

NotificationHandler = Callable[[Any], None]
RequestHandler = Callable[[Any], Any]


def encode_message(message: Dict[str, Any]) -> bytes:
    """Encode a JSON-RPC message as an LSP frame."""
    content = json.dumps(message, separators=(",", ":")).encode("utf-8")
    header = f"Content-Length: {len(content)}\r\n\r\n".encode("ascii")
    return header + content


class JSONRPCClient:
    """JSON-RPC client for LSP server communication."""

    def __init__(self, reader: BinaryIO, writer: BinaryIO, name: str = "lsp"):
        self.reader = reader
        self.writer = writer
        self.name = name
        self._request_id = 0
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._pending_requests: Dict[int, Future] = {}
        self._notification_handlers: Dict[str, List[NotificationHandler]] = {}
        self._request_handlers: Dict[str, RequestHandler] = {}
        self._protocol_error_handlers: List[Callable[[Exception], None]] = []
        self._close_handlers: List[Callable[[Exception], None]] = []
        self._listener_thread: Optional[threading.Thread] = None
        self._closed = threading.Event()

    def _get_next_id(self) -> int:
        """Get next request ID."""
        with self._lock:
            self._request_id += 1
            return self._request_id

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending_requests)

    def on_notification(self, method: str, handler: NotificationHandler) -> None:
        """Register a handler for server notifications of the given method."""
        self._notification_handlers.setdefault(method, []).append(handler)

    def on_request(self, method: str, handler: RequestHandler) -> None:
        """Register a handler whose return value answers a server request."""
        self._request_handlers[method] = handler

    def on_protocol_error(self, handler: Callable[[Exception], None]) -> None:
        self._protocol_error_handlers.append(handler)

    def on_close(self, handler: Callable[[Exception], None]) -> None:
        """Register a handler called once when the stream ends."""
        self._close_handlers.append(handler)

    def _send_message(self, message: Dict[str, Any]):
        """Send JSON-RPC message to LSP server."""
        if self.closed:
            raiseError(
                LSPErrorType.TRANSPORT_CLOSED,
                f"Cannot send to {self.name}: connection is closed",
                ConnectionError,
            )

        data = encode_message(message)
        logger.debug(f"Sending message: {message.get('method', message.get('id'))}")
        try:
            with self._write_lock:
                self.writer.write(data)
                self.writer.flush()
        except (OSError, ValueError) as e:
            raiseError(
                LSPErrorType.TRANSPORT_CLOSED,
                f"Cannot send to {self.name}: {e}",
                ConnectionError,
            )

    def _readline(self) -> Optional[bytes]:
        try:
            line = self.reader.readline()
        except (OSError, ValueError):
            return None
        return line or None

    def _read_exact(self, length: int) -> Optional[bytes]:
        body = bytearray()
        while len(body) < length:
            try:
                chunk = self.reader.read(length - len(body))
            except (OSError, ValueError):
                return None
            if not chunk:
                return None
            body.extend(chunk)
        return bytes(body)

    def _read_message(self) -> Optional[Dict[str, Any]]:
        """
        Read one JSON-RPC message from the LSP server.

        Returns None when the stream has ended. A frame that cannot be decoded
        raises a protocol error after its bytes have been consumed, so the
        caller can keep reading from the next frame.
        """
        headers = {}
        while True:
            line = self._readline()
            if line is None:
                logger.debug("Connection closed by server")
                return None
            line = line.strip()
            if not line:
                if headers:
                    break
                continue
            if b":" in line:
                key, value = line.split(b":", 1)
                headers[key.strip().lower()] = value.strip()

        raw_length = headers.get(b"content-length")
        try:
            content_length = int(raw_length)
        except (TypeError, ValueError):
            content_length = -1
        if content_length < 0 or content_length > MAX_CONTENT_LENGTH:
            raiseError(
                LSPErrorType.PROTOCOL_ERROR,
                f"Invalid or missing Content-Length header: {raw_length!r}",
                ValueError,
            )

        content = self._read_exact(content_length)
        if content is None:
            logger.debug("Connection closed in the middle of a message")
            return None

        try:
            message = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raiseError(
                LSPErrorType.PROTOCOL_ERROR,
                f"Malformed message body: {e}",
                ValueError,
            )
        if not isinstance(message, dict):
            raiseError(
                LSPErrorType.PROTOCOL_ERROR,
                f"Expected a JSON object, got {type(message).__name__}",
                ValueError,
            )
        return message

    def _message_listener(self):
        """Background thread to listen for messages from LSP server."""
        try:
            while True:
                try:
                    message = self._read_message()
                except ValueError as e:
                    if get_error_type(e) is not LSPErrorType.PROTOCOL_ERROR:
                        raise
                    self._report_protocol_error(e)
                    continue

                if message is None:
                    logger.debug("Message listener thread exiting")
                    break

                try:
                    self._dispatch(message)
                except Exception as e:
                    error = createError(
                        LSPErrorType.PROTOCOL_ERROR,
                        f"Failed to handle message from {self.name}: {e}",
                        ValueError,
                    )
                    error.__cause__ = e
                    self._report_protocol_error(error)
        finally:
            self._handle_stream_closed()

    @staticmethod
    def _valid_id(msg_id: Any) -> bool:
        return isinstance(msg_id, (int, str)) and not isinstance(msg_id, bool)

    def _protocol_error(self, message: str) -> None:
        self._report_protocol_error(
            createError(LSPErrorType.PROTOCOL_ERROR, message, ValueError)
        )

    def _dispatch(self, message: Dict[str, Any]) -> None:
        method = message.get("method")
        msg_id = message.get("id")

        if method is not None:
            if not isinstance(method, str):
                self._protocol_error(f"Invalid method name: {method!r}")
                return
            if msg_id is not None and not self._valid_id(msg_id):
                self._protocol_error(f"Invalid request id: {msg_id!r}")
                return
            if msg_id is not None:
                self._handle_server_request(method, msg_id, message.get("params"))
            else:
                self._handle_notification(method, message.get("params"))
            return

        if "id" not in message:
            self._protocol_error(
                f"Message is neither request, response nor notification: {message}"
            )
            return

        if not self._valid_id(msg_id):
            self._protocol_error(f"Invalid response id: {msg_id!r}")
            return

        # Handle responses to requests
        with self._lock:
            future = self._pending_requests.pop(msg_id, None)
        if future is None:
            self._protocol_error(f"Response for unknown request id {msg_id!r}")
            return

        if future.done():
            return  # cancelled by the caller
        if "error" in message:
            error = message.get("error")
            if isinstance(error, dict):
                reason = f"Server returned error {error.get('code')}: {error.get('message')}"
            else:
                reason = f"Server returned a malformed error: {error!r}"
            future.set_exception(
                createError(LSPErrorType.RESPONSE_ERROR, reason, RuntimeError)
            )
            if not isinstance(error, dict):
                self._protocol_error(f"Response {msg_id!r} carries a non-object error")
        else:
            future.set_result(message.get("result"))

    def _handle_notification(self, method: str, params: Any) -> None:
        handlers = self._notification_handlers.get(method)
        if not handlers:
            logger.debug(f"Received notification: {method}")
            return
        for handler in handlers:
            try:
                handler(params)
            except Exception as e:
                logger.opt(exception=e).error(f"Notification handler for {method} failed")

    def _handle_server_request(self, method: str, msg_id: Any, params: Any) -> None:
        logger.debug(f"Received request: {method}")
        handler = self._request_handlers.get(method)
        if handler is not None:
            try:
                response = {"jsonrpc": "2.0", "id": msg_id, "result": handler(params)}
            except Exception as e:
                logger.opt(exception=e).error(f"Request handler for {method} failed")
                response = {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "error": {"code": -32603, "message": str(e)},
                }
        elif method == "workspace/configuration":
            items = params.get("items") if isinstance(params, dict) else None
            if not isinstance(items, list):
                items = []
            response = {"jsonrpc": "2.0", "id": msg_id, "result": [None] * len(items)}
        else:
            # Default response for unhandled requests
            response = {"jsonrpc": "2.0", "id": msg_id, "result": None}

        try:
            self._send_message(response)
        except ConnectionError as e:
            logger.debug(f"Could not answer {method}: {e}")

    def _report_protocol_error(self, error: Exception) -> None:
        logger.warning(f"Protocol error from {self.name}: {error}")
        for handler in list(self._protocol_error_handlers):
            handler(error)

    def _handle_stream_closed(self) -> None:
        self._closed.set()
        error = createError(
            LSPErrorType.TRANSPORT_CLOSED,
            f"Connection to {self.name} closed",
            ConnectionError,
        )

        with self._lock:
            pending = list(self._pending_requests.values())
            self._pending_requests.clear()
        for future in pending:
            if not future.done():
                future.set_exception(error)

        for handler in list(self._close_handlers):
            handler(error)

    def start(self):
        """Start the message listener thread."""
        if self._listener_thread is None or not self._listener_thread.is_alive():
            self._listener_thread = threading.Thread(
                target=self._message_listener,
                name=f"{self.name}-listener",
                daemon=True,
            )
            self._listener_thread.start()
            logger.debug("Started message listener thread")

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """Wait for the listener to observe the end of the stream."""
        return self._closed.wait(timeout)

    def send_request(self, method: str, params: Any = None) -> Future:
        """
        Send a request and return a future for its result.

        The future fails with a RESPONSE_ERROR when the server answers with an
        error and with TRANSPORT_CLOSED when the connection ends first.
        """
        request_id = self._get_next_id()
        request = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            request["params"] = params

        future: Future = Future()
        with self._lock:
            self._pending_requests[request_id] = future

        try:
            self._send_message(request)
        except ConnectionError as e:
            with self._lock:
                self._pending_requests.pop(request_id, None)
            future.set_exception(e)
        return future

    def send_notification(self, method: str, params: Any = None) -> None:
        """Send a notification; no response is expected."""
        notification = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            notification["params"] = params
        self._send_message(notification)

    def initialize(self, params: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        """
        Perform the initialize handshake and return the server's InitializeResult.

        Raises a HANDSHAKE_FAILURE when the server rejects the request, does not
        answer in time, or the connection ends before the answer arrives.
        """
        self.start()

        future = self.send_request("initialize", params)
        logger.debug("Sent initialize request to LSP server")
        try:
            result = future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            self._forget(future)
            raiseError(
                LSPErrorType.HANDSHAKE_FAILURE,
                f"{self.name} did not answer initialize within {timeout}s",
                RuntimeError,
            )
        except (ConnectionError, RuntimeError) as e:
            if get_error_type(e) is LSPErrorType.TRANSPORT_CLOSED:
                reason = "connection closed before the handshake completed"
            else:
                reason = f"initialize rejected: {e}"
            raiseError(
                LSPErrorType.HANDSHAKE_FAILURE,
                f"{self.name} handshake failed: {reason}",
                RuntimeError,
            )

        if not isinstance(result, dict) or not isinstance(
            result.get("capabilities"), dict
        ):
            raiseError(
                LSPErrorType.HANDSHAKE_FAILURE,
                f"{self.name} returned an invalid initialize result: {result!r}",
                RuntimeError,
            )

        logger.debug(f"Received response from LSP server: {result}")

        try:
            self.send_notification("initialized", {})
        except ConnectionError as e:
            raiseError(
                LSPErrorType.HANDSHAKE_FAILURE,
                f"{self.name} handshake failed: {e}",
                RuntimeError,
            )
        return result

    def _forget(self, future: Future) -> None:
        with self._lock:
            for request_id, pending in list(self._pending_requests.items()):
                if pending is future:
                    del self._pending_requests[request_id]

    def shutdown(self, timeout: float) -> bool:
        """
        Send the shutdown request followed by the exit notification.

        Returns True if the server acknowledged shutdown in time.
        """
        acknowledged = False
        future = self.send_request("shutdown")
        try:
            future.result(timeout=timeout)
            acknowledged = True
        except FutureTimeoutError:
            future.cancel()
            self._forget(future)
            logger.warning(f"{self.name} did not acknowledge shutdown within {timeout}s")
        except (ConnectionError, RuntimeError) as e:
            logger.debug(f"Error during LSP shutdown: {e}")

        try:
            self.send_notification("exit")
        except ConnectionError as e:
            logger.debug(f"Could not send exit notification: {e}")
        return acknowledged
