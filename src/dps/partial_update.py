"""Sparse partial-update compilation shared by every mutable table.

``compile_update`` turns ``{"logicalName": value}`` changes into a
``SET`` fragment with positional placeholders. Only names present in the
caller's allow-list map are accepted; the map also renames them to storage
columns.

    >>> compiled = compile_update({"mealName": "Tacos", "price": 5}, {"mealName": "meal_name", "price": "price"})
    >>> compiled.set_clause
    '"meal_name" = ?, "price" = ?'
    >>> compiled.bind(7)
    ('Tacos', 5, 7)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping

from .errors import ValidationError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class CompiledUpdate:
    assignments: tuple[str, ...]
    values: tuple[Any, ...]

    @property
    def set_clause(self) -> str:
        return ", ".join(self.assignments)

    def bind(self, row_id: object) -> tuple[Any, ...]:
        # row id fills the trailing WHERE placeholder
        return (*self.values, row_id)


def to_sql_value(value: Any) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def compile_update(changes: Mapping[str, Any], field_map: Mapping[str, str]) -> CompiledUpdate:
    if not changes:
        raise ValidationError("No data to update", field="changes", value={})

    unknown = [key for key in changes if key not in field_map]
    if unknown:
        raise ValidationError(
            f"Unknown update field(s): {', '.join(sorted(unknown))}",
            field="changes",
            value=sorted(unknown),
        )

    assignments: list[str] = []
    values: list[Any] = []
    for key, value in changes.items():
        column = field_map[key]
        if not _IDENTIFIER.match(column):
            raise ValueError(f"invalid column identifier: {column!r}")
        assignments.append(f'"{column}" = ?')
        values.append(to_sql_value(value))

    return CompiledUpdate(assignments=tuple(assignments), values=tuple(values))
