"""
Document selection: which editor documents are in scope for the server.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Union

from langclient.utils.error_utils import raiseError

from .exceptions import LSPErrorType


@dataclass(frozen=True)
class DocumentFilter:
    """A single (scheme, language id) filter."""

    scheme: str
    language: str

    def matches(self, scheme: str, language_id: str) -> bool:
        # Exact equality on both fields, no globbing
        return self.scheme == scheme and self.language == language_id

    def to_dict(self) -> Dict[str, str]:
        return {"scheme": self.scheme, "language": self.language}


class DocumentSelector:
    """
    Set of document filters combined with logical OR.

    Order of the filters is irrelevant and duplicates collapse.
    """

    def __init__(self, filters: Iterable[Union[DocumentFilter, Dict[str, str]]] = ()):
        self._filters: FrozenSet[DocumentFilter] = frozenset(
            self._to_filter(f) for f in filters
        )

    @staticmethod
    def _to_filter(entry: Any) -> DocumentFilter:
        if isinstance(entry, DocumentFilter):
            return entry
        if isinstance(entry, dict):
            scheme = entry.get("scheme")
            language = entry.get("language")
            if isinstance(scheme, str) and isinstance(language, str):
                return DocumentFilter(scheme, language)
        raiseError(
            LSPErrorType.INVALID_DESCRIPTOR,
            f"Document filter needs string 'scheme' and 'language' fields: {entry!r}",
            ValueError,
        )

    @classmethod
    def from_dicts(cls, entries: Iterable[Dict[str, str]]) -> "DocumentSelector":
        return cls(entries)

    @property
    def filters(self) -> FrozenSet[DocumentFilter]:
        return self._filters

    def matches(self, scheme: str, language_id: str) -> bool:
        """Return True if any filter accepts the scheme and language id."""
        return any(f.matches(scheme, language_id) for f in self._filters)

    def matches_document(self, document) -> bool:
        return self.matches(document.scheme, document.language_id)

    def to_list(self) -> List[Dict[str, str]]:
        return [
            f.to_dict()
            for f in sorted(self._filters, key=lambda f: (f.scheme, f.language))
        ]

    def __iter__(self) -> Iterator[DocumentFilter]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __contains__(self, item) -> bool:
        return item in self._filters

    def __eq__(self, other) -> bool:
        if not isinstance(other, DocumentSelector):
            return NotImplemented
        return self._filters == other._filters

    def __hash__(self) -> int:
        return hash(self._filters)

    def __repr__(self) -> str:
        return f"DocumentSelector({self.to_list()!r})"
