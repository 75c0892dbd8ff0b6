"""
TypeScript language server definition.
"""

from typing import Any, Dict

from ..document_selector import DocumentSelector
from .base_lsp import BaseLSP


class TypeScriptLSP(BaseLSP):
    """typescript-language-server for JavaScript and TypeScript sources."""

    @property
    def server_name(self) -> str:
        return "typescript-language-server"

    @property
    def display_name(self) -> str:
        return "TypeScript Language Server"

    @property
    def exec_name(self) -> str:
        return "typescript-language-server"

    @property
    def document_selector(self) -> DocumentSelector:
        return DocumentSelector(
            {"scheme": "file", "language": language}
            for language in (
                "javascript",
                "javascriptreact",
                "typescript",
                "typescriptreact",
            )
        )

    @property
    def init_options(self) -> Dict[str, Any]:
        """Return the initialization options for this language server."""
        return {
            "preferences": {
                "includeInlayParameterNameHints": "all",
                "includeInlayFunctionParameterTypeHints": True,
                "includeInlayVariableTypeHints": True,
            }
        }
