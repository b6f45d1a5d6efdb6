"""Tests for column descriptors, the catalog and the dataclass builder."""

from dataclasses import dataclass, field
from typing import Optional

import pytest

from datatables_query.catalog import (
    Catalog,
    ColumnDescriptor,
    ConfigurationError,
    SortDirection,
    catalog_from_dataclass,
)
from datatables_query.plan import FieldRef, concat, field as ref


@dataclass
class Location:
    City: str
    Country: str


@dataclass
class Person:
    Id: int
    Name: str
    Location: Optional[Location] = None
    PasswordHash: str = field(default="", metadata={"datatables": False})
    Nickname: str = field(
        default="", metadata={"datatables": {"searchable": False, "output_name": "nick"}}
    )


def test_descriptor_defaults():
    column = ColumnDescriptor("name", "Name")

    assert column.output_name == "name"
    assert column.display_name == "name"
    assert not column.is_searchable
    assert not column.is_orderable
    assert not column.is_ordered
    assert column.storage_expression() == FieldRef("Name")


def test_descriptor_requires_public_name():
    with pytest.raises(ConfigurationError):
        ColumnDescriptor("  ")


def test_storage_expression_without_path():
    column = ColumnDescriptor("action")

    with pytest.raises(ConfigurationError):
        column.storage_expression()


def test_clone_isolates_request_state():
    template = ColumnDescriptor("name", "Name", options={"render": {"mode": "link"}})
    clone = template.clone()

    clone.search_value = "ann"
    clone.ordering_index = 0
    clone.ordering_direction = SortDirection.DESCENDING
    clone.is_searchable = True
    clone.options["render"]["mode"] = "text"

    assert template.search_value == ""
    assert template.ordering_index == -1
    assert template.ordering_direction is SortDirection.ASCENDING
    assert not template.is_searchable
    assert template.options == {"render": {"mode": "link"}}


def test_clone_resets_request_fields():
    template = ColumnDescriptor("name", "Name")
    first = template.clone()
    first.index = 3
    first.search_value = "x"

    second = first.clone()
    assert second.index == -1
    assert second.search_value == ""


def test_catalog_rejects_duplicate_public_names():
    with pytest.raises(ConfigurationError, match="Duplicate"):
        Catalog([ColumnDescriptor("name", "Name"), ColumnDescriptor("name", "Other")])


def test_catalog_lookup_and_renames():
    catalog = Catalog(
        [
            ColumnDescriptor("id", "Id"),
            ColumnDescriptor("company", "CompanyName", output_name="CompanyName"),
        ]
    )

    assert len(catalog) == 2
    assert "company" in catalog
    assert catalog.get("missing") is None
    assert catalog.public_names() == ["id", "company"]
    assert catalog.output_renames() == {"id": "id", "CompanyName": "company"}


def test_validate_entity_type():
    Catalog([ColumnDescriptor("city", "Location.City")]).validate_entity_type(Person)

    catalog = Catalog([ColumnDescriptor("planet", "Location.Planet")])
    with pytest.raises(ConfigurationError, match="Location.Planet"):
        catalog.validate_entity_type(Person)


def test_validate_entity_type_checks_expression_overrides():
    catalog = Catalog(
        [
            ColumnDescriptor(
                "address",
                ordering_expression=concat(ref("Location.City"), ref("Location.Street")),
            )
        ]
    )

    with pytest.raises(ConfigurationError, match="Location.Street"):
        catalog.validate_entity_type(Person)


def test_validate_columns_checks_root_segment():
    catalog = Catalog(
        [ColumnDescriptor("id", "Id"), ColumnDescriptor("city", "location.City")]
    )

    # Unquoted SQL names may differ in case
    catalog.validate_columns(["id", "Location"])

    with pytest.raises(ConfigurationError, match="not a column"):
        Catalog([ColumnDescriptor("email", "Email")]).validate_columns(["id", "name"])


def test_catalog_from_dataclass():
    catalog = catalog_from_dataclass(Person, overrides={"Name": {"search_case_insensitive": True}})

    assert catalog.public_names() == ["Id", "Name", "Location", "Nickname"]
    assert catalog.entity_type is Person
    assert catalog.get("Name").search_case_insensitive
    assert catalog.get("Id").is_orderable

    nickname = catalog.get("Nickname")
    assert not nickname.is_searchable
    assert nickname.output_name == "nick"


def test_catalog_from_dataclass_rejects_unknown_overrides():
    with pytest.raises(ConfigurationError, match="Email"):
        catalog_from_dataclass(Person, overrides={"Email": {"is_searchable": False}})


def test_catalog_from_dataclass_requires_dataclass():
    with pytest.raises(ConfigurationError):
        catalog_from_dataclass(dict)
