"""
Language server definitions.
"""

from .base_lsp import BaseLSP
from .lsp_factory import LSPFactory
from .rome_lsp import RomeLSP
from .typescript_lsp import TypeScriptLSP

__all__ = ["BaseLSP", "RomeLSP", "TypeScriptLSP", "LSPFactory"]
