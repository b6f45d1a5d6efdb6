"""QueryExecutor runs one parsed request against a queryable."""

from typing import Any, Callable, List, Optional

from ..catalog import Catalog
from ..composer import OrderComposer, PredicateComposer
from ..config import TableConfig
from ..datasources.base import Queryable
from ..parser import ParsedRequest
from ..plan.ordering import QuerySpec
from ..utils.logging import get_request_logger
from . import diagnostics
from .paged import PagedResult, compute_pages_count


class QueryExecutor:
    """Coordinates composition, counting, paging and mapping of one request.

    Errors raised by the queryable (untranslatable expressions, database
    errors) propagate unchanged; a request either yields a complete
    ``PagedResult`` or raises.
    """

    def __init__(
        self,
        config: Optional[TableConfig] = None,
        predicate_composer: Optional[PredicateComposer] = None,
        order_composer: Optional[OrderComposer] = None,
    ):
        """Initialize dependencies."""
        self.config = config or TableConfig()
        self.predicate_composer = predicate_composer or PredicateComposer()
        self.order_composer = order_composer or OrderComposer()

    def execute(
        self,
        queryable: Queryable,
        request: ParsedRequest,
        catalog: Optional[Catalog] = None,
    ) -> PagedResult:
        """Run the request pipeline.

        Args:
            queryable: Unfiltered rows of the table
            request: Decoded request
            catalog: Catalog to validate against the queryable (optional)

        Returns:
            Page of mapped rows with counters
        """
        logger = get_request_logger(__name__, request.draw, self.config.table_identifier)
        self._validate(queryable, catalog)
        spec = self.compose(request)
        filtered = queryable.apply(spec)
        page = self._paginate(filtered, request)
        self._emit_log(request, page)

        total_count = filtered.count()
        unfiltered_count = self._count_unfiltered(queryable)
        logger.debug(
            f"Matched {total_count} rows; fetching page {request.page_number} "
            f"(size {request.page_size})"
        )
        rows = page.materialize()
        items = self._map_rows(rows, request.mapping_function)

        return PagedResult(
            items=items,
            total_count=total_count,
            page_size=request.page_size,
            page_number=request.page_number,
            pages_count=compute_pages_count(total_count, request.page_size),
            draw=request.draw,
            unfiltered_count=unfiltered_count,
        )

    def compose(self, request: ParsedRequest) -> QuerySpec:
        """Compose the filter predicate and ordering plan."""
        return QuerySpec(
            predicate=self.predicate_composer.compose(request),
            ordering=self.order_composer.compose(request),
        )

    def _validate(self, queryable: Queryable, catalog: Optional[Catalog]) -> None:
        if catalog is not None:
            queryable.validate(catalog)

    def _paginate(self, queryable: Queryable, request: ParsedRequest) -> Queryable:
        if not request.is_paginated:
            return queryable
        return queryable.skip(request.offset).take(request.page_size)

    def _count_unfiltered(self, queryable: Queryable) -> Optional[int]:
        if not self.config.count_unfiltered_total:
            return None
        return queryable.count()

    def _emit_log(self, request: ParsedRequest, page: Queryable) -> None:
        hook = request.log
        if hook is None and self.config.log_queries:
            hook = diagnostics.default_log_hook
        if hook is None:
            return
        original = dict(request.original_request)
        diagnostics.emit(
            hook, lambda: diagnostics.describe_request(original, page.describe())
        )

    def _map_rows(
        self, rows: List[Any], mapping_function: Optional[Callable[[Any], Any]]
    ) -> List[Any]:
        if mapping_function is None:
            return rows
        items = []
        for row in rows:
            items.append(mapping_function(row))
        return items
