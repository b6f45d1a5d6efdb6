"""Overlapping requests against one table and one DuckDB source."""

from concurrent.futures import ThreadPoolExecutor

from conftest import people_columns
from datatables_query import QueryableDataTable, TableConfig
from datatables_query.catalog import ColumnDescriptor

ALL_COLUMNS = "columns[0][data]=id&columns[1][data]=name&columns[2][data]=city&columns[3][data]=age"

REQUESTS = [
    ALL_COLUMNS + "&search[value]=erl&order[0][column]=0&length=10",
    ALL_COLUMNS + "&columns[1][search][value]=mit&order[0][column]=3&order[0][dir]=desc",
    ALL_COLUMNS + "&columns[1][cisearch]=true&search[value]=ANN&order[0][column]=1&length=1",
    ALL_COLUMNS + "&order[0][column]=2&order[0][dir]=desc&start=2&length=2",
]


def request_scoped_state(catalog):
    state = []
    for column in catalog:
        state.append(
            (
                column.index,
                column.search_value,
                column.column_search_regex,
                column.ordering_index,
                column.ordering_direction,
                dict(column.options),
            )
        )
    return state


def render(table, query_string):
    response = table.render_response(query_string)
    return response.draw, response.records_filtered, [row["Id"] for row in response.data]


def test_concurrent_requests_share_no_state(duckdb_people):
    duckdb_people.connection.execute(
        "CREATE TABLE main.numbers AS SELECT range AS n, 'row ' || range AS label FROM range(20000)"
    )
    people = QueryableDataTable(
        people_columns(),
        duckdb_people.queryable("people"),
        config=TableConfig(count_unfiltered_total=True),
    )
    numbers = QueryableDataTable(
        [
            ColumnDescriptor("n", "n", is_searchable=True, is_orderable=True),
            ColumnDescriptor("label", "label", is_searchable=True),
        ],
        duckdb_people.queryable("numbers"),
    )
    numbers_request = "columns[0][data]=n&columns[1][data]=label&search[value]=99&order[0][column]=0&order[0][dir]=desc&length=5"

    expected = [render(people, query) for query in REQUESTS]
    expected_numbers = numbers.render_response(numbers_request).to_dict()
    before = request_scoped_state(people.catalog)

    jobs = []
    with ThreadPoolExecutor(max_workers=6) as pool:
        for _ in range(15):
            for query in REQUESTS:
                jobs.append((query, pool.submit(render, people, query)))
            jobs.append((None, pool.submit(lambda: numbers.render_response(numbers_request).to_dict())))

        for query, job in jobs:
            if query is None:
                assert job.result() == expected_numbers
            else:
                assert job.result() == expected[REQUESTS.index(query)]

    assert request_scoped_state(people.catalog) == before
    for column in people.catalog:
        assert column.index == -1
        assert column.search_value == ""
