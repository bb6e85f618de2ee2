from __future__ import annotations

import json

from domain.models import ROOT_DISPLAY, ROOT_LABEL, ROOT_PATH

_RESERVED_KEY_CHARS = frozenset('.[]"')


def needs_quoting(key: str) -> bool:
    return not key or any(char in _RESERVED_KEY_CHARS for char in key)


def quote_key(key: str) -> str:
    return f"[{json.dumps(key, ensure_ascii=False)}]"


def join_key(parent: str, key: str) -> str:
    # Keys that could collide with path syntax are written as ["..."] segments.
    if needs_quoting(key):
        return f"{parent}{quote_key(key)}"
    if parent == ROOT_PATH:
        return key
    return f"{parent}.{key}"


def join_index(parent: str, index: int) -> str:
    return f"{parent}[{index}]"


def join_member(parent: str, key: str | int) -> str:
    if isinstance(key, int):
        return join_index(parent, key)
    return join_key(parent, key)


def member_label(key: str | int) -> str:
    return str(key)


def node_label(path: str, key: str | int | None) -> str:
    if path == ROOT_PATH or key is None:
        return ROOT_LABEL
    return member_label(key)


def display_path(path: str) -> str:
    return path or ROOT_DISPLAY
