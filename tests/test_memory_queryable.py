"""Tests for the in-memory queryable."""

import pytest

from datatables_query.datasources import InMemoryQueryable
from datatables_query.plan import (
    OrderKey,
    OrderingPlan,
    QuerySpec,
    SortDirection,
    field,
)

ROWS = [
    {"Id": 1, "A": "x", "B": 2, "Name": "bob"},
    {"Id": 2, "A": "y", "B": 1, "Name": "Anna"},
    {"Id": 3, "A": "x", "B": 5, "Name": "Carl"},
    {"Id": 4, "A": None, "B": 3, "Name": "alice"},
    {"Id": 5, "A": "y", "B": 9, "Name": "Bea"},
]


def ids(rows):
    return [row["Id"] for row in rows]


def test_builders_return_new_queryables():
    base = InMemoryQueryable(ROWS)
    filtered = base.filter(field("A").eq("x"))

    assert base.count() == 5
    assert filtered.count() == 2
    assert ids(filtered.materialize()) == [1, 3]


def test_filter_drops_unknown_results():
    queryable = InMemoryQueryable(ROWS).filter(field("A").ne("x"))

    assert ids(queryable.materialize()) == [2, 5]


def test_two_key_ordering_matches_manual_sort():
    queryable = (
        InMemoryQueryable(ROWS)
        .filter(field("A").ne("z"))
        .order_by(field("A"))
        .order_by(field("B"), SortDirection.DESCENDING, then=True)
    )

    expected = sorted(
        [row for row in ROWS if row["A"] is not None],
        key=lambda row: (row["A"], -row["B"]),
    )
    assert ids(queryable.materialize()) == ids(expected)


def test_nulls_first_ascending_last_descending():
    ascending = InMemoryQueryable(ROWS).order_by(field("A"))
    descending = InMemoryQueryable(ROWS).order_by(field("A"), SortDirection.DESCENDING)

    assert ids(ascending.materialize())[0] == 4
    assert ids(descending.materialize())[-1] == 4


def test_ordering_is_stable_for_ties():
    queryable = InMemoryQueryable(ROWS).order_by(field("A"), SortDirection.DESCENDING)

    assert ids(queryable.materialize()) == [2, 5, 1, 3, 4]


def test_case_insensitive_ordering():
    sensitive = InMemoryQueryable(ROWS).order_by(field("Name"))
    insensitive = InMemoryQueryable(ROWS).order_by(field("Name"), case_insensitive=True)

    assert [row["Name"] for row in sensitive.materialize()] == [
        "Anna", "Bea", "Carl", "alice", "bob"
    ]
    assert [row["Name"] for row in insensitive.materialize()] == [
        "alice", "Anna", "Bea", "bob", "Carl"
    ]


def test_then_requires_prior_ordering():
    with pytest.raises(ValueError):
        InMemoryQueryable(ROWS).order_by(field("A"), then=True)


def test_skip_and_take():
    queryable = InMemoryQueryable(ROWS).order_by(field("Id")).skip(1).take(2)

    assert ids(queryable.materialize()) == [2, 3]
    assert queryable.count() == 2


def test_apply_query_spec():
    spec = QuerySpec(
        predicate=field("B").gt(1),
        ordering=OrderingPlan(
            (
                OrderKey(field("A"), SortDirection.DESCENDING),
                OrderKey(field("B")),
            )
        ),
    )

    assert ids(InMemoryQueryable(ROWS).apply(spec).materialize()) == [5, 1, 3, 4]


def test_distinct_values():
    values = InMemoryQueryable(ROWS).distinct_values(field("A"))

    assert values == ["x", "y"]


def test_describe():
    queryable = (
        InMemoryQueryable(ROWS)
        .filter(field("A").eq("x"))
        .order_by(field("Name"), case_insensitive=True)
        .skip(0)
        .take(2)
    )

    assert queryable.describe() == (
        "rows[5].where(A = 'x').order_by(lower(Name) asc).skip(0).take(2)"
    )
