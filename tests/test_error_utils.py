import pytest

from langclient.services.lsp.exceptions import LSPErrorType
from langclient.utils.error_utils import createError, get_error_type, raiseError


def test_create_error_tags_without_raising():
    error = createError(LSPErrorType.PROTOCOL_ERROR, "bad frame")

    assert isinstance(error, ValueError)
    assert str(error) == "bad frame"
    assert get_error_type(error) is LSPErrorType.PROTOCOL_ERROR


def test_raise_error_uses_requested_class():
    with pytest.raises(ConnectionError) as exc_info:
        raiseError(LSPErrorType.TRANSPORT_CLOSED, "gone", ConnectionError)

    assert get_error_type(exc_info.value) is LSPErrorType.TRANSPORT_CLOSED


def test_string_error_types_are_allowed():
    with pytest.raises(RuntimeError) as exc_info:
        raiseError("custom_error", "Something went wrong", RuntimeError)

    assert get_error_type(exc_info.value) == "custom_error"


def test_untagged_errors_have_no_type():
    assert get_error_type(KeyError("x")) is None
