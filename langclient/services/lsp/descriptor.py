"""
Server launch descriptor: how to obtain a running language server.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple, Union

from langclient.utils.error_utils import raiseError

from .exceptions import LSPErrorType


class TransportKind(Enum):
    """Byte-stream channel used to talk to the server."""

    STDIO = "stdio"
    PIPE = "pipe"
    SOCKET = "socket"

    @classmethod
    def parse(cls, value: Union[str, "TransportKind"]) -> "TransportKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raiseError(
                LSPErrorType.INVALID_DESCRIPTOR,
                f"Unknown transport kind: {value!r}. "
                f"Expected one of: {[kind.value for kind in cls]}",
                ValueError,
            )


@dataclass(frozen=True)
class ServerDescriptor:
    """
    Immutable launch configuration for a language server.

    Only an empty command is rejected here. A command that does not exist
    on the system is reported by the transport when the client starts.
    """

    command: str
    transport: TransportKind = TransportKind.STDIO
    args: Tuple[str, ...] = ()

    def __post_init__(self):
        if not isinstance(self.command, str) or not self.command.strip():
            raiseError(
                LSPErrorType.INVALID_DESCRIPTOR,
                "Server command must be a non-empty string",
                ValueError,
            )
        object.__setattr__(self, "transport", TransportKind.parse(self.transport))
        object.__setattr__(self, "args", tuple(str(arg) for arg in self.args))

    @classmethod
    def create(
        cls,
        command: str,
        transport: Union[str, TransportKind] = TransportKind.STDIO,
        args: Sequence[str] = (),
    ) -> "ServerDescriptor":
        return cls(command=command, transport=TransportKind.parse(transport), args=tuple(args))
