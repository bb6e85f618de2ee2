from __future__ import annotations

from typing import Protocol

from domain.models import GraphLayout, JsonValue


class LayoutEngine(Protocol):
    def build_layout(self, document: JsonValue) -> GraphLayout:
        ...
