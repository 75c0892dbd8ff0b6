"""
Factory class for creating language server definitions.
"""

from typing import Dict, List, Type

from langclient.utils.error_utils import raiseError

from ..exceptions import LSPErrorType
from .base_lsp import BaseLSP
from .rome_lsp import RomeLSP
from .typescript_lsp import TypeScriptLSP


class LSPFactory:
    """
    Factory class for creating language server definitions.

    Servers are registered under a short name used on the command line and
    in the configuration file.
    """

    _lsp_classes: Dict[str, Type[BaseLSP]] = {
        "rome": RomeLSP,
        "typescript": TypeScriptLSP,
    }

    @classmethod
    def create_lsp(cls, server: str) -> BaseLSP:
        """
        Create the definition registered under the given name.

        Raises:
            ValueError: If no server is registered under that name
        """
        if server not in cls._lsp_classes:
            raiseError(
                LSPErrorType.UNSUPPORTED_SERVER,
                f"Unsupported server: {server}. Supported servers: {cls.get_supported_servers()}",
                ValueError,
            )
        return cls._lsp_classes[server]()

    @classmethod
    def get_supported_servers(cls) -> List[str]:
        return list(cls._lsp_classes.keys())

    @classmethod
    def register_lsp(cls, server: str, lsp_class: Type[BaseLSP]):
        """
        Register a new definition under a name.

        Args:
            server: The short server name
            lsp_class: The definition class to register
        """
        cls._lsp_classes[server] = lsp_class
