"""
File utility functions for language detection and URI handling.
"""

from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

from .language_extension_map import LANGUAGE_EXTENSION_MAP


def get_language_from_extension(file_path: Union[str, Path]) -> Optional[str]:
    """
    Get the LSP language identifier from file extension or filename.

    Args:
        file_path: Path to the file

    Returns:
        Language identifier if known, None otherwise
    """
    file_path = Path(file_path)
    extension = file_path.suffix.lower()
    filename = file_path.name

    # Check exact filename matches first
    for language, patterns in LANGUAGE_EXTENSION_MAP.items():
        if filename in patterns:
            return language

    for language, extensions in LANGUAGE_EXTENSION_MAP.items():
        if extension in extensions:
            return language

    return None


def path_to_uri(file_path: Union[str, Path]) -> str:
    """Convert a filesystem path to an absolute file:// URI."""
    return Path(file_path).resolve().as_uri()


def uri_scheme(uri: str) -> str:
    """Return the scheme part of a URI ("" when there is none)."""
    return urlparse(uri).scheme
