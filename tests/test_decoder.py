"""Tests for decoding the server-side processing wire format."""

import pytest

from datatables_query.catalog import Catalog, ColumnDescriptor, SortDirection
from datatables_query.config import TableConfig
from datatables_query.parser import WireDecoder, parse_bool, parse_int


@pytest.fixture
def decoder():
    catalog = Catalog(
        [
            ColumnDescriptor("id", "Id", is_searchable=True, is_orderable=True),
            ColumnDescriptor(
                "name", "Name", is_searchable=True, is_orderable=True, search_regex=True
            ),
            ColumnDescriptor("city", "City", is_searchable=True, is_orderable=False),
            ColumnDescriptor("secret", "Secret"),
        ]
    )
    return WireDecoder(catalog)


def test_parse_int():
    assert parse_int("42", 0) == 42
    assert parse_int(" -3 ", 0) == -3
    assert parse_int("+7", 0) == 7
    assert parse_int("4.5", 9) == 9
    assert parse_int("abc", 9) == 9
    assert parse_int(None, 9) == 9


def test_parse_bool():
    assert parse_bool("true") is True
    assert parse_bool("TRUE") is True
    assert parse_bool("False") is False
    assert parse_bool("1") is None
    assert parse_bool(None) is None


def test_defaults_for_empty_request(decoder):
    request = decoder.decode_query_string("")

    assert request.draw == 0
    assert request.page_number == 1
    assert request.page_size == 15
    assert request.global_search_value == ""
    assert not request.global_search_regex
    assert request.columns == []


def test_default_page_size_comes_from_config():
    decoder = WireDecoder(Catalog([]), TableConfig(default_page_size=40))

    assert decoder.decode_query_string("draw=3").page_size == 40


def test_paging(decoder):
    request = decoder.decode_query_string("?draw=7&start=20&length=10")

    assert request.draw == 7
    assert request.page_size == 10
    assert request.page_number == 3
    assert request.offset == 20


def test_malformed_paging_falls_back(decoder):
    request = decoder.decode_query_string("draw=x&start=-5&length=abc")

    assert request.draw == 0
    assert request.page_size == 15
    assert request.page_number == 1


def test_non_positive_length_disables_paging(decoder):
    request = decoder.decode_query_string("start=30&length=-1")

    assert not request.is_paginated
    assert request.page_number == 1
    assert request.offset == 0


def test_none_parameters_raise(decoder):
    with pytest.raises(TypeError):
        decoder.decode(None)
    with pytest.raises(TypeError):
        decoder.decode_query_string(None)


def test_columns_are_clones_with_request_state(decoder):
    request = decoder.decode_query_string(
        "columns[0][data]=name&columns[0][search][value]=ann"
        "&columns[1][data]=unknown&columns[2][data]=id"
    )

    assert [column.public_name for column in request.columns] == ["name", "id"]
    name = request.column("name")
    assert name.index == 0
    assert name.search_value == "ann"
    assert request.column_at(2).public_name == "id"
    assert decoder.catalog.get("name").search_value == ""


def test_client_flags_only_narrow(decoder):
    request = decoder.decode_query_string(
        "columns[0][data]=name&columns[0][searchable]=false&columns[0][orderable]=false"
        "&columns[1][data]=secret&columns[1][searchable]=true&columns[1][orderable]=true"
    )

    name = request.column("name")
    assert not name.is_searchable
    assert not name.is_orderable
    secret = request.column("secret")
    assert not secret.is_searchable
    assert not secret.is_orderable


def test_regex_requires_server_opt_in(decoder):
    request = decoder.decode_query_string(
        "search[regex]=true"
        "&columns[0][data]=name&columns[0][search][regex]=true"
        "&columns[1][data]=city&columns[1][search][regex]=true"
    )

    assert request.global_search_regex
    assert request.column("name").column_search_regex
    assert not request.column("city").column_search_regex


def test_case_insensitive_flags_only_enable(decoder):
    request = decoder.decode_query_string(
        "columns[0][data]=name&columns[0][cisearch]=true&columns[0][ciorder]=TRUE"
        "&columns[1][data]=id&columns[1][cisearch]=false"
    )

    assert request.column("name").search_case_insensitive
    assert request.column("name").ordering_case_insensitive
    assert not request.column("id").search_case_insensitive


def test_name_used_when_data_is_index(decoder):
    request = decoder.decode_query_string(
        "columns[0][data]=0&columns[0][name]=name&columns[1][data]=&columns[1][name]=id"
    )

    assert [column.public_name for column in request.columns] == ["name", "id"]


def test_duplicate_column_blocks_keep_first(decoder):
    request = decoder.decode_query_string(
        "columns[0][data]=name&columns[0][search][value]=a"
        "&columns[1][data]=name&columns[1][search][value]=b"
    )

    assert len(request.columns) == 1
    assert request.column("name").search_value == "a"


def test_ordering_slots(decoder):
    request = decoder.decode_query_string(
        "columns[0][data]=id&columns[1][data]=name"
        "&order[0][column]=1&order[0][dir]=DESC"
        "&order[1][column]=0&order[1][dir]=sideways"
    )

    ordered = request.ordered_columns()
    assert [column.public_name for column in ordered] == ["name", "id"]
    assert ordered[0].ordering_direction is SortDirection.DESCENDING
    assert ordered[1].ordering_direction is SortDirection.ASCENDING


def test_unresolvable_sort_slots_are_dropped(decoder):
    request = decoder.decode_query_string(
        "columns[0][data]=id&columns[1][data]=city"
        "&order[0][column]=9&order[1][column]=x&order[2][column]=1"
    )

    assert request.ordered_columns() == []


def test_mapping_with_list_values(decoder):
    request = decoder.decode({"draw": ["4", "5"], "search[value]": ["bo"], "length": []})

    assert request.draw == 4
    assert request.global_search_value == "bo"
    assert request["search[value]"] == "bo"
    assert request["missing"] is None


def test_decode_url(decoder):
    request = decoder.decode_url("https://example.org/people/data?draw=2&search%5Bvalue%5D=ann")

    assert request.draw == 2
    assert request.global_search_value == "ann"
