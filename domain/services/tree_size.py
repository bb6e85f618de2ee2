from __future__ import annotations

from domain.models import JsonValue, is_primitive


def calculate_tree_size(value: JsonValue) -> int:
    """Return the number of vertical slots needed to render ``value``.

    Primitives and empty containers take one slot. A non-empty container takes
    the sum of its members' slots, one per primitive member.
    """
    size = 0
    stack: list[JsonValue] = [value]
    while stack:
        current = stack.pop()
        if is_primitive(current) or not current:
            size += 1
            continue
        members = current.values() if isinstance(current, dict) else current
        stack.extend(members)
    return size
