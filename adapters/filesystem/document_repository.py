from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from adapters.filesystem.json_utils import load_json, write_json_atomic
from domain.models import GraphLayout, JsonValue


class FileSystemDocumentRepository:
    def load(self, path: Path) -> JsonValue:
        if not path.exists():
            msg = f"Document not found: {path}"
            raise FileNotFoundError(msg)
        return load_json(path)

    def load_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def save_text(self, text: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def load_all_with_paths(self, directory: Path) -> List[tuple[Path, JsonValue]]:
        return [(path, load_json(path)) for path in sorted(self._iter_paths(directory))]

    def save_layout(self, layout: GraphLayout, path: Path) -> None:
        write_json_atomic(path, layout.to_dict())

    def _iter_paths(self, directory: Path) -> Iterable[Path]:
        yield from directory.glob("*.json")
