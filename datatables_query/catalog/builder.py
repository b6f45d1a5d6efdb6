"""Build a catalog from a dataclass declaration.

Each field of the dataclass becomes a column whose public name and storage
path are the field name. Per-field settings are read from the field's
metadata under the ``datatables`` key::

    @dataclass
    class Person:
        id: int
        name: str = field(metadata={"datatables": {"search_case_insensitive": True}})
        password_hash: str = field(default="", metadata={"datatables": False})

A ``False`` marker or ``{"exclude": True}`` leaves the field out.
"""

from dataclasses import fields, is_dataclass
from typing import Any, Dict, Mapping, Optional

from ..errors import ConfigurationError
from .catalog import Catalog
from .column import ColumnDescriptor

METADATA_KEY = "datatables"


def catalog_from_dataclass(
    entity_type: type,
    *,
    overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
    searchable: bool = True,
    orderable: bool = True,
) -> Catalog:
    """Declare one column per dataclass field.

    Args:
        entity_type: Dataclass describing a row
        overrides: Extra descriptor settings keyed by public name; applied
            after the field metadata
        searchable: Default for ``is_searchable``
        orderable: Default for ``is_orderable``

    Returns:
        Catalog bound to ``entity_type``

    Raises:
        ConfigurationError: If ``entity_type`` is not a dataclass, or an
            override names a column that was not declared
    """
    if not is_dataclass(entity_type) or not isinstance(entity_type, type):
        raise ConfigurationError(
            f"catalog_from_dataclass expects a dataclass type, got {entity_type!r}"
        )
    overrides = dict(overrides or {})

    columns = []
    for item in fields(entity_type):
        settings = _field_settings(item.metadata)
        if settings is None:
            continue
        kwargs: Dict[str, Any] = {
            "public_name": item.name,
            "storage_path": item.name,
            "is_searchable": searchable,
            "is_orderable": orderable,
        }
        kwargs.update(settings)
        kwargs.update(overrides.pop(kwargs["public_name"], {}))
        columns.append(ColumnDescriptor(**kwargs))

    if overrides:
        raise ConfigurationError(
            f"Overrides for undeclared columns: {', '.join(sorted(overrides))}"
        )
    catalog = Catalog(columns, entity_type=entity_type)
    catalog.validate_entity_type()
    return catalog


def _field_settings(metadata: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Descriptor settings for a field, or ``None`` if it is excluded."""
    declared = metadata.get(METADATA_KEY, {})
    if declared is False:
        return None
    if declared is True:
        return {}
    settings = dict(declared)
    if settings.pop("exclude", False):
        return None
    if "searchable" in settings:
        settings["is_searchable"] = settings.pop("searchable")
    if "orderable" in settings:
        settings["is_orderable"] = settings.pop("orderable")
    return settings
