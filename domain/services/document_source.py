from __future__ import annotations

import logging
from collections.abc import Callable
from typing import List

from domain.models import JsonValue
from domain.ports.documents import DocumentParseError, DocumentParser

logger = logging.getLogger(__name__)

DocumentListener = Callable[[JsonValue], None]


class DocumentSource:
    """Raw document text plus the last value that parsed successfully.

    Listeners are notified only when new text parses. Blank text clears the
    value without notifying; text that fails to parse records the error and
    leaves the previous value in place.
    """

    def __init__(self, parser: DocumentParser, text: str = "") -> None:
        self.parser = parser
        self.text = ""
        self.value: JsonValue = None
        self.has_value = False
        self.error: str | None = None
        self._listeners: List[DocumentListener] = []
        if text:
            self.update_text(text)

    def subscribe(self, listener: DocumentListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update_text(self, text: str) -> bool:
        self.text = text
        if not text.strip():
            self.value = None
            self.has_value = False
            self.error = None
            return False
        try:
            value = self.parser.parse(text)
        except DocumentParseError as exc:
            self.error = str(exc)
            logger.debug("Document text rejected: %s", self.error)
            return False
        self.value = value
        self.has_value = True
        self.error = None
        for listener in list(self._listeners):
            listener(value)
        return True

    def format_text(self) -> str:
        return self._rewrite(indent=True)

    def minify_text(self) -> str:
        return self._rewrite(indent=False)

    def _rewrite(self, *, indent: bool) -> str:
        value = self.parser.parse(self.text)
        self.update_text(self.parser.dump(value, indent=indent))
        return self.text
