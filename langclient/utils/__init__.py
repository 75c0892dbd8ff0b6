from .error_utils import createError, get_error_type, raiseError
from .file_utils import get_language_from_extension, path_to_uri, uri_scheme

__all__ = [
    "createError",
    "raiseError",
    "get_error_type",
    "get_language_from_extension",
    "path_to_uri",
    "uri_scheme",
]
