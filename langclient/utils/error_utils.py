"""
Generic error utilities for creating and raising typed exceptions.

This module provides utilities to create exceptions with associated error types
in a clean, reusable way across the application.
"""

from enum import Enum
from typing import NoReturn, Type, Union


def createError(
    error_type: Union[Enum, str],
    message: str,
    exception_class: Type[Exception] = ValueError,
) -> Exception:
    """
    Create an exception with an associated error type without raising it.

    Used where the error has to travel through a future instead of the stack.

    Args:
        error_type: The error type enum or string to associate with the exception
        message: The error message
        exception_class: The exception class to instantiate (defaults to ValueError)

    Returns:
        The exception instance with its error_type attribute set
    """
    error = exception_class(message)
    setattr(error, "error_type", error_type)
    return error


def raiseError(
    error_type: Union[Enum, str],
    message: str,
    exception_class: Type[Exception] = ValueError,
) -> NoReturn:
    """
    Create and raise an exception with an associated error type.

    This utility function reduces repetitive code when creating exceptions
    that need to be categorized with specific error types.

    Args:
        error_type: The error type enum or string to associate with the exception
        message: The error message to display
        exception_class: The exception class to instantiate (defaults to ValueError)

    Raises:
        The specified exception with error_type attribute set

    Examples:
        >>> from langclient.services.lsp.exceptions import LSPErrorType
        >>> raiseError(LSPErrorType.LAUNCH_FAILURE, "Cannot spawn server", RuntimeError)

        >>> raiseError("custom_error", "Something went wrong", RuntimeError)
    """
    raise createError(error_type, message, exception_class)


def get_error_type(error: BaseException):
    """Return the error type attached to an exception, or None."""
    return getattr(error, "error_type", None)
