"""
LSP error types for better error categorization.

This module provides an enum for categorizing LSP-related errors
without complex exception hierarchies. Errors are raised as built-in
exception classes carrying an ``error_type`` attribute
(see ``langclient.utils.error_utils.raiseError``).
"""

from enum import Enum


class LSPErrorType(Enum):
    """Types of LSP errors for categorization."""

    LAUNCH_FAILURE = "launch_failure"
    HANDSHAKE_FAILURE = "handshake_failure"
    PROTOCOL_ERROR = "protocol_error"
    TRANSPORT_CLOSED = "transport_closed"
    RESPONSE_ERROR = "response_error"
    INVALID_STATE = "invalid_state"
    INVALID_DESCRIPTOR = "invalid_descriptor"
    UNSUPPORTED_SERVER = "unsupported_server"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    FILE_NOT_FOUND = "file_not_found"
