"""Response document sent back to the table widget."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterable
from uuid import UUID
import json

from ..catalog import ColumnDescriptor
from ..executor import PagedResult
from .contract import SerializationContract


class DataTablesResponse:
    """``{"draw", "recordsTotal", "recordsFiltered", "data"}`` for one request."""

    def __init__(self, result: PagedResult, columns: Iterable[ColumnDescriptor]):
        self.result = result
        self.contract = SerializationContract(columns)

    @property
    def draw(self) -> int:
        return self.result.draw

    @property
    def records_total(self) -> int:
        return self.result.records_total

    @property
    def records_filtered(self) -> int:
        return self.result.records_filtered

    @property
    def data(self) -> list:
        return self.contract.rename_all(self.result.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "draw": self.draw,
            "recordsTotal": self.records_total,
            "recordsFiltered": self.records_filtered,
            "data": self.data,
        }

    def to_json(self, **json_kwargs) -> str:
        """Serialize with ``json.dumps``; dates use ISO 8601."""
        json_kwargs.setdefault("default", json_default)
        return json.dumps(self.to_dict(), **json_kwargs)

    def __repr__(self) -> str:
        return (
            f"DataTablesResponse(draw={self.draw}, total={self.records_total}, "
            f"filtered={self.records_filtered}, rows={len(self.result)})"
        )


def json_default(value: Any) -> Any:
    """Fallback encoder for values ``json`` does not handle."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
