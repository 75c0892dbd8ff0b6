"""
Transports that spawn a language server and open the byte stream to it.

Every transport launches the server executable. The stdio transport talks over
the process pipes; the pipe and socket transports listen on a Unix domain
socket or a local TCP port, pass its address to the server on the command line
and wait for the server to connect back.
"""

import os
import socket
import subprocess
import tempfile
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import BinaryIO, Dict, List, Optional, Type

from loguru import logger

from langclient.utils.error_utils import raiseError

from .descriptor import ServerDescriptor, TransportKind
from .exceptions import LSPErrorType


class BaseTransport(ABC):
    """
    Base class for server transports.

    A transport owns the server process and both ends of the stream. It is
    opened once and closed once; close() is safe to call repeatedly.
    """

    kind: TransportKind

    def __init__(
        self,
        descriptor: ServerDescriptor,
        connect_timeout: float = 10.0,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        self.descriptor = descriptor
        self.connect_timeout = connect_timeout
        self.cwd = cwd
        self.env = env
        self.process: Optional[subprocess.Popen] = None
        self.reader: Optional[BinaryIO] = None
        self.writer: Optional[BinaryIO] = None
        self._closed = False
        self._close_lock = threading.Lock()

    @abstractmethod
    def open(self) -> None:
        """Launch the server and open the stream, raising LaunchFailure on error."""

    def _launch_args(self, extra_args: List[str]) -> List[str]:
        return [self.descriptor.command, *self.descriptor.args, *extra_args]

    def _spawn(self, extra_args: List[str], stdio: bool) -> subprocess.Popen:
        """Start the server process."""
        cmd = self._launch_args(extra_args)
        logger.debug(f"Spawning language server: {cmd}")

        env = None
        if self.env:
            env = os.environ.copy()
            env.update(self.env)

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE if stdio else subprocess.DEVNULL,
                stdout=subprocess.PIPE if stdio else subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                cwd=self.cwd,
                env=env,
            )
        except OSError as e:
            raiseError(
                LSPErrorType.LAUNCH_FAILURE,
                f"Failed to launch language server '{self.descriptor.command}': {e}",
                RuntimeError,
            )

        self.process = process
        self._start_stderr_drain(process)
        return process

    def _start_stderr_drain(self, process: subprocess.Popen) -> None:
        """Log server stderr so the pipe never fills up."""
        command = os.path.basename(self.descriptor.command)

        def log_stderr():
            if process.stderr:
                try:
                    for line in process.stderr:
                        logger.debug(
                            f"{command} stderr: {line.decode('utf-8', 'replace').rstrip()}"
                        )
                except (OSError, ValueError):
                    pass  # stream closed underneath us

        stderr_thread = threading.Thread(
            target=log_stderr, name=f"{command}-stderr", daemon=True
        )
        stderr_thread.start()

    def is_alive(self) -> bool:
        return self.process is not None and self.process.poll() is None

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self, timeout: float = 2.0) -> None:
        """
        Release the stream and the server process.

        The write side is closed first so a well-behaved server sees EOF and
        exits; a server that is still running after the timeout is killed.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        self._close_stream(self.writer)
        self._release_connection()

        process = self.process
        if process is not None:
            try:
                process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.debug(
                    f"Language server pid {process.pid} did not exit, killing it"
                )
                process.kill()
                process.wait()
            logger.debug(
                f"Language server pid {process.pid} exited with code {process.returncode}"
            )

        self._close_stream(self.reader)
        if process is not None:
            self._close_stream(process.stderr)

    def _release_connection(self) -> None:
        """Hook for transports that hold sockets."""

    @staticmethod
    def _close_stream(stream) -> None:
        if stream is None:
            return
        try:
            stream.close()
        except (OSError, ValueError):
            pass  # broken pipe on close is expected after the server died


class StdioTransport(BaseTransport):
    """Talk to the server over its standard input and output."""

    kind = TransportKind.STDIO

    def open(self) -> None:
        process = self._spawn(["--stdio"], stdio=True)
        if process.stdin is None or process.stdout is None:
            process.kill()
            raiseError(
                LSPErrorType.LAUNCH_FAILURE,
                f"Failed to create pipes for language server '{self.descriptor.command}'",
                RuntimeError,
            )
        self.writer = process.stdin
        self.reader = process.stdout


class _ListeningTransport(BaseTransport):
    """Listen on a socket and wait for the spawned server to connect."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._listener: Optional[socket.socket] = None
        self._connection: Optional[socket.socket] = None

    @abstractmethod
    def _listen(self) -> socket.socket:
        """Create the bound, listening socket."""

    @abstractmethod
    def _server_flag(self) -> str:
        """Command-line flag telling the server where to connect."""

    def open(self) -> None:
        try:
            self._listener = self._listen()
        except OSError as e:
            raiseError(
                LSPErrorType.LAUNCH_FAILURE,
                f"Failed to open {self.kind.value} transport: {e}",
                RuntimeError,
            )

        process = self._spawn([self._server_flag()], stdio=False)
        self._connection = self._accept(process)
        self.reader = self._connection.makefile("rb")
        self.writer = self._connection.makefile("wb")

    def _accept(self, process: subprocess.Popen) -> socket.socket:
        deadline = time.monotonic() + self.connect_timeout
        self._listener.settimeout(0.1)
        while True:
            try:
                connection, _ = self._listener.accept()
                connection.settimeout(None)
                logger.debug(f"Language server connected over {self.kind.value}")
                return connection
            except socket.timeout:
                pass

            if process.poll() is not None:
                self.close()
                raiseError(
                    LSPErrorType.LAUNCH_FAILURE,
                    f"Language server '{self.descriptor.command}' exited with code "
                    f"{process.returncode} before connecting",
                    RuntimeError,
                )
            if time.monotonic() >= deadline:
                self.close()
                raiseError(
                    LSPErrorType.LAUNCH_FAILURE,
                    f"Language server '{self.descriptor.command}' did not connect "
                    f"within {self.connect_timeout}s",
                    RuntimeError,
                )

    def _release_connection(self) -> None:
        if self._connection is not None:
            try:
                self._connection.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # peer already gone
            self._connection.close()
        if self._listener is not None:
            self._listener.close()


class PipeTransport(_ListeningTransport):
    """Talk to the server over a Unix domain socket."""

    kind = TransportKind.PIPE

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pipe_name = os.path.join(
            tempfile.gettempdir(), f"langclient-{uuid.uuid4().hex[:16]}.sock"
        )

    def _listen(self) -> socket.socket:
        listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        listener.bind(self.pipe_name)
        listener.listen(1)
        return listener

    def _server_flag(self) -> str:
        return f"--pipe={self.pipe_name}"

    def _release_connection(self) -> None:
        super()._release_connection()
        try:
            os.unlink(self.pipe_name)
        except FileNotFoundError:
            pass


class SocketTransport(_ListeningTransport):
    """Talk to the server over a local TCP connection."""

    kind = TransportKind.SOCKET

    def __init__(self, *args, host: str = "127.0.0.1", **kwargs):
        super().__init__(*args, **kwargs)
        self.host = host
        self.port: Optional[int] = None

    def _listen(self) -> socket.socket:
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.bind((self.host, 0))
        listener.listen(1)
        self.port = listener.getsockname()[1]
        return listener

    def _server_flag(self) -> str:
        return f"--socket={self.port}"


TRANSPORTS: Dict[TransportKind, Type[BaseTransport]] = {
    TransportKind.STDIO: StdioTransport,
    TransportKind.PIPE: PipeTransport,
    TransportKind.SOCKET: SocketTransport,
}


def create_transport(
    descriptor: ServerDescriptor,
    connect_timeout: float = 10.0,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> BaseTransport:
    """Create an unopened transport for the descriptor's transport kind."""
    transport_class = TRANSPORTS[descriptor.transport]
    return transport_class(
        descriptor, connect_timeout=connect_timeout, cwd=cwd, env=env
    )
