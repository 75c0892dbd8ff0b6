"""
Lint checker that collects published diagnostics through a running client.
"""

import os
from typing import Any, Dict, List

from loguru import logger

from langclient.utils.error_utils import raiseError

from .documents import TextDocument
from .exceptions import LSPErrorType
from .language_client import LanguageClient


class LintChecker:
    """Main class for checking lint using a language client."""

    @staticmethod
    def format_diagnostic(diagnostic: Dict[str, Any]) -> str:
        message = diagnostic.get("message", "")
        start = diagnostic.get("range", {}).get("start", {})
        end = diagnostic.get("range", {}).get("end", {})

        start_line = start.get("line", 0) + 1
        start_col = start.get("character", 0) + 1
        end_line = end.get("line", 0) + 1
        end_col = end.get("character", 0) + 1

        return f"[L{start_line}:{start_col}-L{end_line}:{end_col}] - {message}"

    @staticmethod
    def check_lint(
        client: LanguageClient, file_path: str, timeout: float = 10.0
    ) -> List[str]:
        """
        Check lint for a file using a running language client.

        Files outside the client's document selector yield no results and
        are never sent to the server.

        Args:
            client: A running LanguageClient
            file_path: Path to the file to check
            timeout: Seconds to wait for the server to publish diagnostics

        Returns:
            List of formatted lint issues

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the language of the file cannot be determined
            RuntimeError: If the client is not running
        """
        if not os.path.exists(file_path):
            raiseError(
                LSPErrorType.FILE_NOT_FOUND,
                f"File not found: {file_path}",
                FileNotFoundError,
            )

        document = TextDocument.from_path(file_path)
        if not client.document_selector.matches_document(document):
            logger.debug(f"Skipping {file_path}: {document.language_id} is out of scope")
            return []

        if not client.is_running:
            raiseError(
                LSPErrorType.INVALID_STATE,
                f"Cannot lint {file_path}: {client.client_id} is {client.state.value}",
                RuntimeError,
            )

        client.clear_diagnostics(document.uri)
        if not client.did_open(document):
            logger.warning(f"{file_path} is already open or the session ended")
            return []

        try:
            diagnostics = client.wait_for_diagnostics(document.uri, timeout)
        finally:
            client.did_close(document)

        if diagnostics is None:
            logger.warning(f"No diagnostics published for {file_path} within {timeout}s")
            return []

        logger.info(f"Total diagnostics collected: {len(diagnostics)}")
        return [LintChecker.format_diagnostic(d) for d in diagnostics]
