"""Tests for request execution, pagination and diagnostics."""

import threading

import pytest

from conftest import PEOPLE, people_columns
from datatables_query.catalog import Catalog, ColumnDescriptor
from datatables_query.config import TableConfig
from datatables_query.datasources import InMemoryQueryable
from datatables_query.executor import PagedResult, QueryExecutor, compute_pages_count
from datatables_query.executor import diagnostics
from datatables_query.parser import WireDecoder

ALL_COLUMNS = "columns[0][data]=id&columns[1][data]=name&columns[2][data]=city&columns[3][data]=age"


def execute(query_string, columns=None, rows=PEOPLE, config=None, **decode_kwargs):
    catalog = Catalog(columns or people_columns())
    request = WireDecoder(catalog, config).decode_query_string(query_string, **decode_kwargs)
    return QueryExecutor(config).execute(InMemoryQueryable(rows), request, catalog)


@pytest.mark.parametrize(
    "total,size,expected",
    [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (25, 5, 5), (7, 0, 1), (7, -1, 1)],
)
def test_compute_pages_count(total, size, expected):
    assert compute_pages_count(total, size) == expected


def test_end_to_end_global_search():
    # Substring search is case-sensitive unless enabled per column; the
    # client turns it on for "name" (DESIGN.md, decision 2).
    columns = [
        ColumnDescriptor("id", "Id", is_searchable=True, is_orderable=True),
        ColumnDescriptor("name", "Name", is_searchable=True, is_orderable=True),
    ]
    rows = [{"Id": 1, "Name": "Anna"}, {"Id": 2, "Name": "Bob"}, {"Id": 3, "Name": "Annika"}]

    result = execute(
        "start=0&length=2&search[value]=ann"
        "&columns[0][data]=id&columns[0][searchable]=true"
        "&columns[1][data]=name&columns[1][searchable]=true&columns[1][cisearch]=true",
        columns=columns,
        rows=rows,
    )

    assert result.records_filtered == 2
    assert result.records_total == 2
    assert [row["Id"] for row in result] == [1, 3]


def test_single_count_by_default():
    result = execute(ALL_COLUMNS + "&search[value]=Bo")

    assert result.total_count == 1
    assert result.unfiltered_count is None
    assert result.records_total == result.records_filtered == 1


def test_unfiltered_count_when_configured():
    config = TableConfig(count_unfiltered_total=True)
    result = execute(ALL_COLUMNS + "&search[value]=Bo", config=config)

    assert result.records_filtered == 1
    assert result.records_total == len(PEOPLE)


def test_draw_is_echoed():
    assert execute("draw=7").draw == 7


def test_paging_state():
    result = execute(ALL_COLUMNS + "&start=2&length=2&order[0][column]=0")

    assert [row["Id"] for row in result] == [3, 4]
    assert result.page_number == 2
    assert result.pages_count == 3
    assert result.has_previous_page
    assert result.has_next_page


def test_disabled_paging_returns_everything():
    result = execute(ALL_COLUMNS + "&length=-1")

    assert len(result) == len(PEOPLE)
    assert result.pages_count == 1
    assert not result.has_next_page


def test_bad_sort_index_keeps_source_order():
    plain = execute(ALL_COLUMNS)
    bad = execute(ALL_COLUMNS + "&order[0][column]=42&order[0][dir]=desc")

    assert [row["Id"] for row in bad] == [row["Id"] for row in plain] == [1, 2, 3, 4, 5]


def test_mapping_function_applied_to_page_rows():
    result = execute(
        ALL_COLUMNS + "&length=2&order[0][column]=0&order[0][dir]=desc",
        mapping_function=lambda row: {"label": f"{row['Id']}:{row['Name']}"},
    )

    assert result.items == [{"label": "5:Smith"}, {"label": "4:smith"}]


def test_errors_propagate():
    columns = people_columns()
    columns[0] = ColumnDescriptor(
        "id", "Id", is_searchable=True, search_predicate=lambda row, text: 1 / 0
    )

    with pytest.raises(ZeroDivisionError):
        execute(ALL_COLUMNS + "&search[value]=x", columns=columns)


def test_compose_returns_query_spec():
    catalog = Catalog(people_columns())
    request = WireDecoder(catalog).decode_query_string(
        ALL_COLUMNS + "&search[value]=a&order[0][column]=1"
    )

    spec = QueryExecutor().compose(request)
    assert spec.predicate is not None
    assert len(spec.ordering) == 1


def test_log_hook_receives_request_and_query():
    delivered = threading.Event()
    messages = []

    def hook(message):
        messages.append(message)
        delivered.set()

    result = execute(ALL_COLUMNS + "&draw=3&search[value]=Bo", log=hook)

    assert result.total_count == 1
    assert delivered.wait(5)
    assert messages[0].startswith("Request: ")
    assert "draw=3" in messages[0]
    assert "Query: rows[5].where(" in messages[0]


def test_log_hook_failure_does_not_reach_caller():
    def hook(message):
        raise RuntimeError("log sink down")

    result = execute(ALL_COLUMNS + "&search[value]=Bo", log=hook)
    assert result.total_count == 1

    future = diagnostics.emit(hook, lambda: "message")
    assert isinstance(future.exception(timeout=5), RuntimeError)


def test_log_backlog_is_bounded():
    release = threading.Event()
    messages = []

    def slow_hook(message):
        release.wait(5)
        messages.append(message)

    dispatcher = diagnostics.LogDispatcher(max_workers=1, max_pending=2)
    first = dispatcher.emit(slow_hook, lambda: "first")
    second = dispatcher.emit(slow_hook, lambda: "second")
    third = dispatcher.emit(slow_hook, lambda: "third")

    assert first is not None and second is not None
    assert third is None
    assert dispatcher.dropped == 1

    release.set()
    dispatcher.shutdown(wait=True)
    assert messages == ["first", "second"]


def test_paged_result_container():
    result = PagedResult(items=["a", "b"], total_count=2, page_size=10, pages_count=1)

    assert list(result) == ["a", "b"]
    assert result[1] == "b"
    assert not result.has_previous_page
