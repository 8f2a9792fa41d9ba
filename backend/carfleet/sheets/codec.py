"""Row codec: fixed-position sheet rows to typed records and back.

Cells arrive loosely typed (numbers, numeric-looking strings, blanks, short
rows). Decoding is forgiving and never raises on a short row; encoding
follows the same column table so a layout change is a one-line edit in
``carfleet.sheets.config``.

Numeric rule: numbers pass through; strings are stripped, thousands
separators and a leading currency symbol removed, then parsed as float.
Anything unparseable, NaN or infinite becomes 0. Integer columns truncate.
"""

from __future__ import annotations

import datetime
import math
import re
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from carfleet.sheets.config import Column, FieldKind, SheetLayout

RecordT = TypeVar("RecordT", bound=BaseModel)

_CURRENCY_PREFIX = re.compile(r"^[^\d\-+.]+")


def parse_number(value: Any) -> float:
    """Leniently parse a cell value as a float (0.0 when not numeric)."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "")
        text = _CURRENCY_PREFIX.sub("", text).strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _split_parts(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        parts = [str(p) for p in value]
    else:
        parts = str(value).split(",")
    return [p.strip() for p in parts if p.strip()]


def parse_amounts(value: Any) -> list[float]:
    """Parse a comma-separated list of amounts ("-1500,-2000,-1500")."""
    return [parse_number(p) for p in _split_parts(value)]


def parse_split(value: Any) -> list[float]:
    """Parse a comma-separated cell ("0.3,0.4,0.3" or "30%,40%,30%").

    Percentages (a trailing % on any part, or parts summing to ~100) are
    scaled down to fractions.
    """
    parts = _split_parts(value)
    has_percent = any(p.endswith("%") for p in parts)
    numbers = [parse_number(p.rstrip("%")) for p in parts]
    if has_percent or (numbers and abs(sum(numbers) - 100) < 0.5):
        numbers = [n / 100 for n in numbers]
    return numbers


def _format_number(value: float) -> str:
    value = round(float(value), 10)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_split(values: list[float] | None) -> str:
    """Render numbers as one comma-separated cell, e.g. "0.3,0.4,0.3"."""
    if not values:
        return ""
    return ",".join(_format_number(v) for v in values)


def to_text(value: Any) -> str:
    """Render a cell as text; dates become ISO strings."""
    if value is None:
        return ""
    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time(0, 0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _cell(row: list[Any], index: int) -> Any:
    if index < len(row):
        return row[index]
    return None


def _decode_cell(column: Column, value: Any) -> Any:
    if column.kind is FieldKind.NUMBER:
        return parse_number(value)
    if column.kind is FieldKind.INTEGER:
        return int(parse_number(value))
    if column.kind is FieldKind.SPLIT:
        return parse_split(value)
    if column.kind is FieldKind.AMOUNTS:
        return parse_amounts(value)
    return to_text(value)


def _encode_cell(column: Column, value: Any) -> Any:
    if column.kind is FieldKind.NUMBER:
        return parse_number(value)
    if column.kind is FieldKind.INTEGER:
        return int(parse_number(value))
    if column.kind in (FieldKind.SPLIT, FieldKind.AMOUNTS):
        if isinstance(value, str):
            return value
        return format_split(value)
    return to_text(value)


def _set_path(target: dict, dotted: str, value: Any) -> None:
    keys = dotted.split(".")
    for key in keys[:-1]:
        target = target.setdefault(key, {})
    target[keys[-1]] = value


def _get_path(source: dict, dotted: str) -> Any:
    for key in dotted.split("."):
        if not isinstance(source, dict) or key not in source:
            return None
        source = source[key]
    return source


def changed_fields(patch: dict[str, Any], prefix: str = "") -> set[str]:
    """Dotted field names set by a partial update.

    >>> sorted(changed_fields({"color": "Red", "additional_costs": {"transport": 700}}))
    ['additional_costs.transport', 'color']
    """
    fields: set[str] = set()
    for key, value in patch.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            fields |= changed_fields(value, f"{name}.")
        else:
            fields.add(name)
    return fields


def _is_changed(field: str, changed: set[str]) -> bool:
    return field in changed or any(field.startswith(f"{name}.") for name in changed)


def deep_merge(base: dict, patch: dict) -> dict:
    """Return ``base`` with ``patch`` applied; nested dicts merge key by key."""
    merged = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class RowCodec(Generic[RecordT]):
    """Decodes and encodes rows of one sheet through its column table."""

    def __init__(self, layout: SheetLayout, model: type[RecordT]) -> None:
        self.layout = layout
        self.model = model

    def decode_raw(self, row: list[Any] | None) -> dict[str, Any]:
        """Decode a raw row into a nested dict keyed by field name."""
        row = list(row or [])
        data: dict[str, Any] = {}
        for column in self.layout.columns:
            _set_path(data, column.field, _decode_cell(column, _cell(row, column.index)))
        return data

    def decode(self, row: list[Any] | None) -> RecordT:
        return self.model.model_validate(self.decode_raw(row))

    def encode(
        self,
        record: RecordT | dict[str, Any],
        previous: list[Any] | None = None,
        changed: set[str] | None = None,
    ) -> list[Any]:
        """Encode a record into a full-width row.

        Derived offsets carry the previous raw value unchanged, or a blank
        when there is no previous row. They are never computed here.

        With ``changed`` (dotted field names, see ``changed_fields``) only
        those columns are encoded from ``record``; every other column keeps
        its previous raw cell as is, even one that would not parse.
        """
        if isinstance(record, BaseModel):
            data = record.model_dump(mode="json")
        else:
            data = record
        previous = list(previous or [])

        row: list[Any] = [""] * self.layout.width
        for column in self.layout.columns:
            if column.derived or (changed is not None and not _is_changed(column.field, changed)):
                prior = _cell(previous, column.index)
                row[column.index] = "" if prior is None else prior
                continue
            value = _get_path(data, column.field)
            row[column.index] = _encode_cell(column, value)
        return row

    def merge(self, record: RecordT, patch: dict[str, Any]) -> RecordT:
        """Apply a partial update; fields absent from ``patch`` keep their value.

        ``patch`` must be JSON-mode data (dates already rendered as strings).
        Derived fields in ``patch`` are ignored.
        """
        derived = {c.field.split(".")[0] for c in self.layout.columns if c.derived}
        clean = {k: v for k, v in patch.items() if k not in derived and k != "id"}
        merged = deep_merge(record.model_dump(mode="json"), clean)
        return self.model.model_validate(merged)

    def row_id(self, row: list[Any] | None) -> str:
        return to_text(_cell(list(row or []), self.layout.id_column.index))
