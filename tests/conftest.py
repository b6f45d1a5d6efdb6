"""Shared fixtures: sample rows, catalogs and a query-capturing DuckDB source."""

from typing import Dict, List

import pytest

from datatables_query.catalog import Catalog, ColumnDescriptor
from datatables_query.datasources.duckdb import DuckDBDataSource


class QueryCapturingDataSource(DuckDBDataSource):
    """DuckDB source that records every executed query for push-down assertions."""

    def __init__(self, name: str, config: Dict[str, str]):
        super().__init__(name, config)
        self.captured_queries: List[str] = []

    def execute_query(self, query: str):
        self.captured_queries.append(query)
        return super().execute_query(query)

    def clear_queries(self) -> None:
        self.captured_queries = []


PEOPLE = [
    {"Id": 1, "Name": "Anna", "City": "Berlin", "Age": 31},
    {"Id": 2, "Name": "Bob", "City": "Boston", "Age": 45},
    {"Id": 3, "Name": "Annika", "City": "Copenhagen", "Age": 28},
    {"Id": 4, "Name": "smith", "City": "berlin", "Age": None},
    {"Id": 5, "Name": "Smith", "City": "London", "Age": 45},
]


@pytest.fixture
def people_rows():
    return [dict(row) for row in PEOPLE]


def people_columns(**name_settings) -> List[ColumnDescriptor]:
    """Columns over ``PEOPLE``; keyword arguments tweak the ``name`` column."""
    name_kwargs = {"is_searchable": True, "is_orderable": True}
    name_kwargs.update(name_settings)
    return [
        ColumnDescriptor("id", "Id", is_searchable=True, is_orderable=True),
        ColumnDescriptor("name", "Name", **name_kwargs),
        ColumnDescriptor("city", "City", is_searchable=True, is_orderable=True),
        ColumnDescriptor("age", "Age", is_orderable=True),
    ]


@pytest.fixture
def people_catalog():
    return Catalog(people_columns())


@pytest.fixture
def duckdb_people():
    """In-memory DuckDB holding ``PEOPLE`` in ``main.people``."""
    datasource = QueryCapturingDataSource("mem", {"path": ":memory:", "read_only": False})
    datasource.connect()
    datasource.connection.execute(
        """
        CREATE TABLE main.people (
            Id INTEGER,
            Name VARCHAR,
            City VARCHAR,
            Age INTEGER
        )
        """
    )
    datasource.connection.execute(
        """
        INSERT INTO main.people VALUES
        (1, 'Anna', 'Berlin', 31),
        (2, 'Bob', 'Boston', 45),
        (3, 'Annika', 'Copenhagen', 28),
        (4, 'smith', 'berlin', NULL),
        (5, 'Smith', 'London', 45)
        """
    )
    datasource.clear_queries()

    yield datasource

    datasource.disconnect()
