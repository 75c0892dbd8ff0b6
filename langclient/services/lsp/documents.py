"""
Editor-side text documents as seen by the language client.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from langclient.utils.error_utils import raiseError
from langclient.utils.file_utils import (
    get_language_from_extension,
    path_to_uri,
    uri_scheme,
)

from .exceptions import LSPErrorType


@dataclass(frozen=True)
class TextDocument:
    """A document open in the editor."""

    uri: str
    language_id: str
    version: int = 1
    text: str = ""

    @property
    def scheme(self) -> str:
        return uri_scheme(self.uri)

    @classmethod
    def from_path(
        cls,
        file_path: Union[str, Path],
        language_id: Optional[str] = None,
        text: Optional[str] = None,
    ) -> "TextDocument":
        """
        Build a document for a file on disk.

        The language id is detected from the file extension unless given.
        The file is read when no text is supplied.
        """
        language = language_id or get_language_from_extension(file_path)
        if not language:
            raiseError(
                LSPErrorType.UNSUPPORTED_LANGUAGE,
                f"Unable to determine language for file: {file_path}",
                ValueError,
            )
        if text is None:
            with open(file_path, "r", encoding="utf-8") as f:
                text = f.read()
        return cls(uri=path_to_uri(file_path), language_id=language, text=text)

    def with_text(self, text: str) -> "TextDocument":
        """Return the next version of this document with new content."""
        return replace(self, text=text, version=self.version + 1)

    def to_item(self) -> Dict[str, Any]:
        """TextDocumentItem payload for textDocument/didOpen."""
        return {
            "uri": self.uri,
            "languageId": self.language_id,
            "version": self.version,
            "text": self.text,
        }

    def to_identifier(self) -> Dict[str, Any]:
        return {"uri": self.uri}

    def to_versioned_identifier(self) -> Dict[str, Any]:
        return {"uri": self.uri, "version": self.version}
