"""Tests for the DataTable facade."""

import json

import pytest

from conftest import PEOPLE, people_columns
from datatables_query import DataTable, QueryableDataTable, TableConfig
from datatables_query.catalog import ColumnDescriptor
from datatables_query.datasources import InMemoryQueryable
from datatables_query.plan import field

ALL_COLUMNS = "columns[0][data]=id&columns[1][data]=name&columns[2][data]=city&columns[3][data]=age"


class PeopleTable(DataTable):
    """Only people aged 30 or more are visible; rows are mapped to view models."""

    def columns(self):
        columns = people_columns()
        columns[1] = ColumnDescriptor(
            "name", "Name", output_name="FullName", is_searchable=True, is_orderable=True
        )
        return columns

    def query(self):
        return InMemoryQueryable(PEOPLE)

    def filter(self, queryable):
        return queryable.filter(field("Age").ge(30))

    def mapping_function(self):
        return lambda row: {"Id": row["Id"], "FullName": row["Name"], "City": row["City"]}

    def config(self):
        return TableConfig(default_page_size=2)


def test_render_response_applies_pre_filter_and_mapping():
    response = PeopleTable().render_response("draw=4&" + ALL_COLUMNS + "&order[0][column]=0")

    document = json.loads(response.to_json())
    assert document["draw"] == 4
    assert document["recordsFiltered"] == 3
    assert document["data"] == [
        {"Id": 1, "name": "Anna", "City": "Berlin"},
        {"Id": 2, "name": "Bob", "City": "Boston"},
    ]


def test_build_request_accepts_url_mapping_and_query_string():
    table = PeopleTable()

    assert table.build_request("https://example.org/data?draw=2").draw == 2
    assert table.build_request({"draw": "3"}).draw == 3
    assert table.build_request("?draw=4&length=5").page_size == 5
    assert table.build_request("draw=5").page_size == 2


def test_render_results_accepts_parsed_request():
    table = PeopleTable()
    request = table.build_request(ALL_COLUMNS + "&search[value]=Bo")

    result = table.render_results(request)
    assert [item["Id"] for item in result] == [2]


def test_catalog_is_built_once():
    table = PeopleTable()

    assert table.catalog is table.catalog
    assert table.catalog.public_names() == ["id", "name", "city", "age"]


def test_table_identifier_defaults_to_class_name():
    assert PeopleTable().get_table_identifier() == "PeopleTable"


def test_distinct_column_values():
    table = PeopleTable()

    assert table.get_distinct_column_values("city") == ["Berlin", "Boston", "London"]
    assert table.get_distinct_column_values("age") == ["31", "45"]
    with pytest.raises(ValueError):
        table.get_distinct_column_values("planet")


def test_client_columns():
    columns = [
        ColumnDescriptor(
            "name",
            "Name",
            display_name="Full name",
            is_searchable=True,
            options={"className": "text-left"},
        )
    ]
    table = QueryableDataTable(columns, InMemoryQueryable([]))

    assert table.client_columns() == [
        {
            "data": "name",
            "name": "name",
            "title": "Full name",
            "searchable": True,
            "orderable": False,
            "className": "text-left",
        }
    ]


def test_queryable_table_with_log_hook():
    messages = []
    table = QueryableDataTable(
        people_columns(),
        InMemoryQueryable(PEOPLE),
        config=TableConfig(table_identifier="people"),
        log_hook=messages.append,
    )

    response = table.render_response({"draw": "1", "columns[0][data]": "id"})
    assert response.records_total == len(PEOPLE)
    assert table.get_table_identifier() == "people"
