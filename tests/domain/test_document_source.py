from __future__ import annotations

from typing import Any

import pytest

from adapters.filesystem.json_utils import OrjsonDocumentParser
from domain.ports.documents import DocumentParseError
from domain.services.document_source import DocumentSource


def _source() -> tuple[DocumentSource, list[Any]]:
    received: list[Any] = []
    source = DocumentSource(OrjsonDocumentParser())
    source.subscribe(received.append)
    return source, received


def test_valid_text_notifies_listeners() -> None:
    source, received = _source()

    assert source.update_text('{"a": 1}') is True

    assert received == [{"a": 1}]
    assert source.value == {"a": 1}
    assert source.has_value
    assert source.error is None


def test_invalid_text_keeps_previous_value() -> None:
    source, received = _source()
    source.update_text('{"a": 1}')

    assert source.update_text('{"a": ') is False

    assert received == [{"a": 1}]
    assert source.value == {"a": 1}
    assert source.error
    assert source.text == '{"a": '


def test_blank_text_clears_without_notifying() -> None:
    source, received = _source()
    source.update_text("[1]")

    assert source.update_text("   ") is False

    assert received == [[1]]
    assert source.value is None
    assert not source.has_value
    assert source.error is None


def test_unsubscribe_stops_notifications() -> None:
    source = DocumentSource(OrjsonDocumentParser())
    received: list[Any] = []
    unsubscribe = source.subscribe(received.append)

    unsubscribe()
    unsubscribe()
    source.update_text("{}")

    assert received == []


def test_format_and_minify_rewrite_text() -> None:
    source, received = _source()
    source.update_text('{ "a" : [1, 2] }')

    assert source.minify_text() == '{"a":[1,2]}'
    assert source.format_text() == '{\n  "a": [\n    1,\n    2\n  ]\n}'
    assert received[-1] == {"a": [1, 2]}


def test_format_rejects_invalid_text() -> None:
    source = DocumentSource(OrjsonDocumentParser(), "{oops")

    with pytest.raises(DocumentParseError):
        source.format_text()
    assert source.text == "{oops"
