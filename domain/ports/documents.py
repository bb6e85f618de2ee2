from __future__ import annotations

from typing import Protocol

from domain.models import JsonValue


class DocumentParseError(ValueError):
    pass


class DocumentParser(Protocol):
    def parse(self, text: str) -> JsonValue:
        ...

    def dump(self, value: JsonValue, *, indent: bool = True) -> str:
        ...
