"""Record ID generation.

IDs are a type prefix plus an unpadded counter (``C1``, ``C2``, ``RN14``).
"""

from __future__ import annotations

from collections.abc import Iterable


def id_number(prefix: str, record_id: object) -> int:
    """Numeric part of an ID, or 0 when it doesn't carry ``prefix`` + digits."""
    text = str(record_id or "").strip()
    if not text.startswith(prefix):
        return 0
    remainder = text[len(prefix):]
    if not remainder.isdigit():
        return 0
    return int(remainder)


def next_id(prefix: str, existing_ids: Iterable[object]) -> str:
    """Return the next ID after the highest numbered one in ``existing_ids``.

    >>> next_id("C", ["C1", "C2", "C5"])
    'C6'
    >>> next_id("C", [])
    'C1'
    """
    highest = max((id_number(prefix, i) for i in existing_ids), default=0)
    return f"{prefix}{highest + 1}"
