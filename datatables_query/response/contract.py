"""Serialization contract: output property names become public column names."""

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any, Dict, Iterable

from ..catalog import ColumnDescriptor


class SerializationContract:
    """Renames mapped-row fields at serialization time.

    A field whose name equals a column's ``output_name`` is emitted under the
    column's ``public_name``. Other fields pass through unchanged, and nested
    values are not touched, so one mapped object can serve several contracts.
    """

    def __init__(self, columns: Iterable[ColumnDescriptor]):
        self.renames: Dict[str, str] = {}
        for column in columns:
            self.renames[column.output_name] = column.public_name

    def rename(self, row: Any) -> Dict[str, Any]:
        """Convert one mapped row into a dict keyed by public names."""
        values = _as_dict(row)
        renamed = {}
        passthrough = {}
        for key, value in values.items():
            if key in self.renames:
                renamed[self.renames[key]] = value
            else:
                passthrough[key] = value
        passthrough.update(renamed)
        return passthrough

    def rename_all(self, rows: Iterable[Any]) -> list:
        return [self.rename(row) for row in rows]


def _as_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, Mapping):
        return dict(row)
    if is_dataclass(row) and not isinstance(row, type):
        return {item.name: getattr(row, item.name) for item in fields(row)}
    if hasattr(row, "__dict__"):
        return {key: value for key, value in vars(row).items() if not key.startswith("_")}
    raise TypeError(f"Cannot serialize row of type {type(row).__name__}")
