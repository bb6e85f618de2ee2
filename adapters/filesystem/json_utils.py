from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson
from filelock import FileLock

from domain.models import JsonValue
from domain.ports.documents import DocumentParseError, DocumentParser


def parse_json_text(text: str | bytes) -> JsonValue:
    try:
        return orjson.loads(text)
    except orjson.JSONDecodeError as exc:
        raise DocumentParseError(str(exc)) from exc


def dump_json_bytes(payload: Any, *, indent: bool = True) -> bytes:
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(payload, option=option)


def load_json(path: Path) -> JsonValue:
    return parse_json_text(path.read_bytes())


def write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    lock_path = path.with_suffix(f"{path.suffix}.lock")
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    with FileLock(str(lock_path)):
        tmp_path.write_bytes(dump_json_bytes(payload))
        tmp_path.replace(path)


class OrjsonDocumentParser(DocumentParser):
    def parse(self, text: str) -> JsonValue:
        return parse_json_text(text)

    def dump(self, value: JsonValue, *, indent: bool = True) -> str:
        return dump_json_bytes(value, indent=indent).decode("utf-8")
