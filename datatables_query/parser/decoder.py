"""Decoder for the DataTables server-side processing wire format.

The decoder is deliberately forgiving: malformed numbers and booleans fall
back to defaults, and column or sort blocks that cannot be matched against
the catalog are dropped. Only a missing parameter collection is an error.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qsl, urlsplit

from ..catalog import Catalog
from ..config import TableConfig
from ..plan.ordering import SortDirection
from .request import ParsedRequest

logger = logging.getLogger(__name__)

_COLUMN_KEY = re.compile(r"^columns\[(\d+)\]\[(?:data|name)\]$")
_ORDER_KEY = re.compile(r"^order\[(\d+)\]\[column\]$")
_INTEGER = re.compile(r"^[+-]?\d+$")


def parse_int(value: Optional[str], default: int) -> int:
    """Parse an integer with optional sign and surrounding whitespace."""
    if value is None:
        return default
    text = value.strip()
    if not _INTEGER.match(text):
        return default
    return int(text)


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """Parse ``true``/``false`` in any case; anything else is ``None``."""
    if value is None:
        return None
    text = value.strip().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return None


class WireDecoder:
    """Turns raw request parameters into a ``ParsedRequest``."""

    def __init__(self, catalog: Catalog, config: Optional[TableConfig] = None):
        """Initialize decoder.

        Args:
            catalog: Columns clients may reference
            config: Table configuration (default page size)
        """
        self.catalog = catalog
        self.config = config or TableConfig()

    def decode_query_string(
        self,
        query_string: str,
        mapping_function: Optional[Callable[[Any], Any]] = None,
        log: Optional[Callable[[str], None]] = None,
    ) -> ParsedRequest:
        """Decode an URL-encoded query string (a leading ``?`` is ignored)."""
        if query_string is None:
            raise TypeError("Query string must not be None")
        params: Dict[str, str] = {}
        for key, value in parse_qsl(query_string.lstrip("?"), keep_blank_values=True):
            params.setdefault(key, value)
        return self.decode(params, mapping_function=mapping_function, log=log)

    def decode_url(
        self,
        url: str,
        mapping_function: Optional[Callable[[Any], Any]] = None,
        log: Optional[Callable[[str], None]] = None,
    ) -> ParsedRequest:
        """Decode the query component of a URL."""
        if url is None:
            raise TypeError("URL must not be None")
        return self.decode_query_string(
            urlsplit(url).query, mapping_function=mapping_function, log=log
        )

    def decode(
        self,
        params: Mapping,
        mapping_function: Optional[Callable[[Any], Any]] = None,
        log: Optional[Callable[[str], None]] = None,
    ) -> ParsedRequest:
        """Decode a parameter mapping.

        Args:
            params: Mapping of parameter name to value; list values (as in
                multi-value form data) contribute their first element
            mapping_function: Row to view-model function for the results
            log: Diagnostic hook receiving a description of the query

        Returns:
            Parsed request

        Raises:
            TypeError: If ``params`` is None
        """
        if params is None:
            raise TypeError("Request parameters must not be None")
        original = _flatten(params)

        request = ParsedRequest(
            original_request=original,
            mapping_function=mapping_function,
            log=log,
        )
        self._decode_paging(original, request)
        self._decode_search(original, request)
        self._decode_columns(original, request)
        self._decode_ordering(original, request)
        return request

    def _decode_paging(self, params: Dict[str, str], request: ParsedRequest) -> None:
        start = max(parse_int(params.get("start"), 0), 0)
        length = parse_int(params.get("length"), self.config.default_page_size)
        request.draw = parse_int(params.get("draw"), 0)
        request.page_size = length
        if length > 0:
            request.page_number = start // length + 1
        else:
            request.page_number = 1

    def _decode_search(self, params: Dict[str, str], request: ParsedRequest) -> None:
        request.global_search_value = params.get("search[value]") or ""
        request.global_search_regex = parse_bool(params.get("search[regex]")) is True

    def _decode_columns(self, params: Dict[str, str], request: ParsedRequest) -> None:
        indices = set()
        for key in params:
            match = _COLUMN_KEY.match(key)
            if match:
                indices.add(int(match.group(1)))

        seen = set()
        for index in sorted(indices):
            prefix = f"columns[{index}]"
            identity = self._column_identity(params, prefix, index)
            descriptor = self.catalog.get(identity) if identity else None
            if descriptor is None:
                logger.debug(f"Dropping column block {index}: unknown column {identity!r}")
                continue
            if descriptor.public_name in seen:
                logger.debug(f"Dropping column block {index}: '{identity}' already listed")
                continue
            seen.add(descriptor.public_name)

            column = descriptor.clone()
            column.index = index
            column.search_value = params.get(f"{prefix}[search][value]") or ""

            searchable = parse_bool(params.get(f"{prefix}[searchable]"))
            if searchable is not None:
                column.is_searchable = descriptor.is_searchable and searchable
            orderable = parse_bool(params.get(f"{prefix}[orderable]"))
            if orderable is not None:
                column.is_orderable = descriptor.is_orderable and orderable

            client_regex = parse_bool(params.get(f"{prefix}[search][regex]")) is True
            column.column_search_regex = descriptor.search_regex and client_regex

            if parse_bool(params.get(f"{prefix}[cisearch]")) is True:
                column.search_case_insensitive = True
            if parse_bool(params.get(f"{prefix}[ciorder]")) is True:
                column.ordering_case_insensitive = True

            request.columns.append(column)

    def _column_identity(
        self, params: Dict[str, str], prefix: str, index: int
    ) -> Optional[str]:
        """Public name a column block refers to: ``data``, else ``name``."""
        data = params.get(f"{prefix}[data]")
        # Columns without a data source are sent with their index as data
        if data and data != str(index):
            return data
        name = params.get(f"{prefix}[name]")
        if name and name.strip():
            return name
        return data or None

    def _decode_ordering(self, params: Dict[str, str], request: ParsedRequest) -> None:
        slots = []
        for key in params:
            match = _ORDER_KEY.match(key)
            if match:
                slots.append(int(match.group(1)))

        for slot in sorted(slots):
            prefix = f"order[{slot}]"
            column_index = parse_int(params.get(f"{prefix}[column]"), -1)
            column = request.column_at(column_index) if column_index >= 0 else None
            if column is None:
                logger.debug(f"Dropping sort slot {slot}: no column at index {column_index}")
                continue
            if not column.is_orderable:
                logger.debug(f"Dropping sort slot {slot}: '{column.public_name}' is not orderable")
                continue
            column.ordering_index = slot
            column.ordering_direction = SortDirection.parse(params.get(f"{prefix}[dir]"))


def _flatten(params: Mapping) -> Dict[str, str]:
    """Copy parameters into a plain ``str -> str`` dict."""
    flat = {}
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = value[0]
        if value is None:
            continue
        flat[str(key)] = str(value)
    return flat
