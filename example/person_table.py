#!/usr/bin/env python3
"""
Example table: people with nested locations, served from memory.

Shows predicate factories, expression overrides, an alternate ordering target
and a mapping function producing view models.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from datatables_query import ColumnDescriptor, DataTable, TableConfig
from datatables_query.datasources import InMemoryQueryable
from datatables_query.plan import concat, field, lit, search_text
from datatables_query.utils.logging import setup_logging

RANGE_DELIMITER = "-delim-"


@dataclass
class Location:
    street: str
    house_number: Optional[str]
    post_code: str
    city: str
    country: str


@dataclass
class Person:
    id: int
    name: str
    email: str
    date_of_birth: date
    location: Location


@dataclass
class PersonViewModel:
    Id: int
    Name: str
    Email: str
    DateOfBirth: date
    Address: str
    City: str
    Country: str


def id_range(search: str):
    """``10-delim-20`` matches ids 10 to 20; any other text matches nothing."""
    parts = [part for part in search.split(RANGE_DELIMITER) if part]
    if len(parts) < 2:
        return lit(False)
    try:
        low, high = int(parts[0]), int(parts[1])
    except ValueError:
        return lit(False)
    return field("id").ge(low) & field("id").le(high)


ADDRESS = concat(field("location.street"), " ", field("location.house_number"))


class PersonTable(DataTable):
    def __init__(self, people: List[Person]):
        self.people = people

    def columns(self):
        return [
            ColumnDescriptor(
                "id",
                "id",
                output_name="Id",
                display_name="ID",
                is_searchable=True,
                is_orderable=True,
                column_search_predicate_factory=id_range,
            ),
            ColumnDescriptor(
                "name",
                "name",
                output_name="Name",
                is_searchable=True,
                is_orderable=True,
                search_case_insensitive=True,
                ordering_case_insensitive=True,
            ),
            ColumnDescriptor(
                "email", "email", output_name="Email", is_searchable=True, search_regex=True
            ),
            ColumnDescriptor(
                "dateOfBirth",
                "date_of_birth",
                output_name="DateOfBirth",
                display_name="Date of Birth",
                is_orderable=True,
            ),
            ColumnDescriptor(
                "address",
                "location.street",
                output_name="Address",
                is_searchable=True,
                is_orderable=True,
                search_predicate=ADDRESS.lower().contains(search_text().lower()),
                ordering_expression=ADDRESS.trim().lower(),
            ),
            ColumnDescriptor(
                "city",
                "location.city",
                output_name="City",
                is_searchable=True,
                is_orderable=True,
            ),
            ColumnDescriptor(
                "country",
                "location.country",
                output_name="Country",
                is_searchable=True,
                is_orderable=True,
                options={"className": "text-uppercase"},
            ),
        ]

    def query(self):
        return InMemoryQueryable(self.people, entity_type=Person)

    def mapping_function(self):
        return to_view_model

    def config(self):
        return TableConfig(default_page_size=10, log_queries=True, table_identifier="people")


def to_view_model(person: Person) -> PersonViewModel:
    location = person.location
    address = f"{location.street} {location.house_number or ''}".strip()
    return PersonViewModel(
        Id=person.id,
        Name=person.name,
        Email=person.email,
        DateOfBirth=person.date_of_birth,
        Address=address,
        City=location.city,
        Country=location.country,
    )


def sample_people() -> List[Person]:
    return [
        Person(1, "Anna Schmidt", "anna@example.org", date(1990, 4, 2),
               Location("Hauptstrasse", "12", "10115", "Berlin", "Germany")),
        Person(2, "Bob Miller", "bob@example.com", date(1985, 11, 23),
               Location("Main Street", "7", "02110", "Boston", "USA")),
        Person(3, "Annika Larsen", "annika@example.dk", date(1979, 1, 30),
               Location("Nyhavn", None, "1051", "Copenhagen", "Denmark")),
        Person(4, "carl smith", "carl@example.com", date(2001, 7, 14),
               Location("High Street", "221", "NW1", "London", "UK")),
    ]


if __name__ == "__main__":
    setup_logging("DEBUG")
    table = PersonTable(sample_people())
    requests = [
        "draw=1&start=0&length=10&search[value]=ann"
        "&columns[0][data]=id&columns[1][data]=name&columns[2][data]=email"
        "&order[0][column]=1&order[0][dir]=asc",
        "draw=2&columns[0][data]=id&columns[0][search][value]=2-delim-3"
        "&columns[1][data]=address&order[0][column]=1&order[0][dir]=desc",
        "draw=3&columns[0][data]=email&columns[0][search][value]=%5Ea.*%5C.org%24"
        "&columns[0][search][regex]=true",
    ]
    for request in requests:
        print(table.render_response(request).to_json(indent=2))
