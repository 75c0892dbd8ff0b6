"""
Base class for language server definitions.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..descriptor import ServerDescriptor, TransportKind
from ..document_selector import DocumentSelector


class BaseLSP(ABC):
    """
    Base class for language server definitions.

    A definition knows how to launch one server and which documents it
    analyzes; get_descriptor() turns it into a launch descriptor.
    """

    @property
    @abstractmethod
    def server_name(self) -> str:
        """Return the identifier of this language server."""
        pass

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Return the human readable name of this language server."""
        pass

    @property
    @abstractmethod
    def exec_name(self) -> str:
        """Return the executable name for this language server."""
        pass

    @property
    @abstractmethod
    def document_selector(self) -> DocumentSelector:
        """Return the documents this server analyzes."""
        pass

    @property
    def args(self) -> List[str]:
        """Return extra arguments passed before the transport flag."""
        return []

    @property
    def transport(self) -> TransportKind:
        return TransportKind.STDIO

    @property
    def init_options(self) -> Dict[str, Any]:
        """Return the initialization options for this language server."""
        return {}

    def get_descriptor(self) -> ServerDescriptor:
        return ServerDescriptor(
            command=self.exec_name, transport=self.transport, args=tuple(self.args)
        )

    def get_config(self) -> Dict[str, Any]:
        """
        Get the complete configuration for this language server.

        Returns:
            Dictionary containing all configuration options
        """
        return {
            "name": self.server_name,
            "display_name": self.display_name,
            "exec_name": self.exec_name,
            "args": self.args,
            "transport": self.transport.value,
            "document_selector": self.document_selector.to_list(),
            "init_options": self.init_options,
        }
