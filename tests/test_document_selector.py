import pytest

from langclient.services.lsp.document_selector import DocumentFilter, DocumentSelector
from langclient.services.lsp.documents import TextDocument
from langclient.services.lsp.exceptions import LSPErrorType
from langclient.utils.error_utils import get_error_type

ROME_SELECTOR = DocumentSelector(
    [
        {"scheme": "file", "language": "javascript"},
        {"scheme": "file", "language": "typescript"},
    ]
)


def test_matches_any_filter():
    assert ROME_SELECTOR.matches("file", "javascript")
    assert ROME_SELECTOR.matches("file", "typescript")


def test_requires_both_fields_to_match():
    assert not ROME_SELECTOR.matches("untitled", "javascript")
    assert not ROME_SELECTOR.matches("file", "python")
    assert not ROME_SELECTOR.matches("file", "JavaScript")


def test_empty_selector_matches_nothing():
    selector = DocumentSelector()

    assert len(selector) == 0
    assert not selector.matches("file", "javascript")


def test_order_and_duplicates_do_not_matter():
    reordered = DocumentSelector(
        [
            DocumentFilter("file", "typescript"),
            {"scheme": "file", "language": "javascript"},
            {"scheme": "file", "language": "typescript"},
        ]
    )

    assert reordered == ROME_SELECTOR
    assert hash(reordered) == hash(ROME_SELECTOR)
    assert len(reordered) == 2
    assert DocumentFilter("file", "javascript") in reordered


def test_matches_document():
    document = TextDocument(uri="file:///src/app.ts", language_id="typescript")
    untitled = TextDocument(uri="untitled:Untitled-1", language_id="typescript")

    assert ROME_SELECTOR.matches_document(document)
    assert not ROME_SELECTOR.matches_document(untitled)


def test_to_list_is_sorted_and_round_trips():
    entries = ROME_SELECTOR.to_list()

    assert entries == [
        {"scheme": "file", "language": "javascript"},
        {"scheme": "file", "language": "typescript"},
    ]
    assert DocumentSelector.from_dicts(entries) == ROME_SELECTOR


@pytest.mark.parametrize(
    "entry",
    [
        {"scheme": "file"},
        {"language": "javascript"},
        {"scheme": "file", "language": 3},
        "file:javascript",
    ],
)
def test_malformed_filter_entries_are_rejected(entry):
    with pytest.raises(ValueError) as exc_info:
        DocumentSelector([entry])

    assert get_error_type(exc_info.value) is LSPErrorType.INVALID_DESCRIPTOR
