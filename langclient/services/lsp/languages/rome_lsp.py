"""
Rome language server definition.
"""

from ..document_selector import DocumentSelector
from .base_lsp import BaseLSP


class RomeLSP(BaseLSP):
    """Rome analyzer and formatter for JavaScript and TypeScript."""

    @property
    def server_name(self) -> str:
        return "rome_lsp"

    @property
    def display_name(self) -> str:
        return "Language Server Rome"

    @property
    def exec_name(self) -> str:
        return "rome_lsp"

    @property
    def document_selector(self) -> DocumentSelector:
        return DocumentSelector(
            [
                {"scheme": "file", "language": "javascript"},
                {"scheme": "file", "language": "typescript"},
            ]
        )
